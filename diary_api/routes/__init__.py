# Routes package init
"""
Diary API — Routes Package
============================

Route Inventory:
    - diary.py:   /api/diary endpoints (list/search, create, get, update,
                  delete, image download)
    - health.py:  GET /health

Routes stay thin: parse the request, call DiaryService, shape the response.
"""
