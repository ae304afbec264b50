"""
Persistence module.

SQLite storage of tasks, their tags and their completed intervals.
"""
from .interval_store import IntervalStore

__all__ = ["IntervalStore"]
