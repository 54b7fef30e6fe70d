"""
Background tasks package
"""

from .queue import ProcessExtractionTask, TaskQueue, BackgroundTaskQueue, InMemoryTaskQueue

__all__ = ["ProcessExtractionTask", "TaskQueue", "BackgroundTaskQueue", "InMemoryTaskQueue"]
