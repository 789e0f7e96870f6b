# Services package init
"""
Diary API — Services Layer
============================

Service Inventory:
    - ImageService: per-entry image files (validate, store, replace, read, delete)
    - DiaryService: entry lifecycle on top of DiaryRepository and ImageService
"""
