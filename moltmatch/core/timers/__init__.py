"""Deferred task scheduling — APScheduler bridge."""

from moltmatch.core.timers.scheduler import AsyncIOTaskScheduler, TaskScheduler

__all__ = ["AsyncIOTaskScheduler", "TaskScheduler"]
