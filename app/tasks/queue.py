"""
백그라운드 작업 큐

새 추출 기록이 생기면 ProcessExtractionTask를 예약.
작업은 기록 id만 들고 있어서 여러 번 전달돼도 항상 현재 상태를 다시 읽음
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, List

from fastapi import BackgroundTasks


@dataclass(frozen=True)
class ProcessExtractionTask:
    """추출 기록 하나를 provider로 보내는 작업 단위"""
    extraction_id: str


TaskHandler = Callable[[ProcessExtractionTask], Awaitable[None]]


class TaskQueue(ABC):
    """작업 예약 인터페이스 (schedule은 즉시 반환, 실행을 기다리지 않음)"""

    @abstractmethod
    def schedule(self, task: ProcessExtractionTask) -> None:
        pass


class BackgroundTaskQueue(TaskQueue):
    """FastAPI BackgroundTasks 기반 큐 (응답 전송 후 실행)"""

    def __init__(self, background_tasks: BackgroundTasks, handler: TaskHandler):
        self.background_tasks = background_tasks
        self.handler = handler

    def schedule(self, task: ProcessExtractionTask) -> None:
        self.background_tasks.add_task(self.handler, task)


class InMemoryTaskQueue(TaskQueue):
    """예약된 작업을 모아뒀다가 drain()으로 실행"""

    def __init__(self):
        self.tasks: List[ProcessExtractionTask] = []

    def schedule(self, task: ProcessExtractionTask) -> None:
        self.tasks.append(task)

    async def drain(self, handler: TaskHandler) -> int:
        """예약 순서대로 실행, 실행한 작업 수 반환"""
        count = 0
        while self.tasks:
            await handler(self.tasks.pop(0))
            count += 1
        return count
