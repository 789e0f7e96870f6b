"""Repositories wrapping the relational tables."""

from diary_api.repositories.diary_repository import DiaryRepository

__all__ = ["DiaryRepository"]
