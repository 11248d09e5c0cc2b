"""
Ingestion Tasks Module - Background ingestion with observable state.
====================================================================

Documents submitted for ingestion become IngestionTask records that move
through pending → running → done | failed. A single asyncio worker runs
them one at a time in submission order, so progress polling sees a
deterministic sequence of states.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from course_advisor.shared.logging import get_logger

logger = get_logger(__name__)

IngestFunction = Callable[[str, str, Callable[[int, int], None]], Awaitable[int]]


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass
class IngestionTask:
    """State of one queued ingestion."""

    source_tag: str
    text: str = field(repr=False)
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    status: TaskStatus = TaskStatus.PENDING
    chunks_total: int = 0
    chunks_done: int = 0
    vector_count: int = 0
    error: Optional[str] = None
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def progress(self) -> float:
        """Percentage of chunks processed (0-100)."""
        if self.status == TaskStatus.DONE:
            return 100.0
        if self.chunks_total == 0:
            return 0.0
        return round(100.0 * self.chunks_done / self.chunks_total, 1)

    @property
    def is_finished(self) -> bool:
        return self.status in (TaskStatus.DONE, TaskStatus.FAILED)

    def update_progress(self, done: int, total: int) -> None:
        self.chunks_done = done
        self.chunks_total = total

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source_tag": self.source_tag,
            "status": self.status.value,
            "progress": self.progress,
            "vector_count": self.vector_count,
            "error": self.error,
            "submitted_at": self.submitted_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class IngestionQueue:
    """
    FIFO queue of ingestion tasks served by one asyncio worker.

    At most ``max_history`` finished tasks are remembered for polling.

    Must be used from inside a running event loop.

    Example:
        >>> queue = IngestionQueue(pipeline.ingest)
        >>> task = queue.submit(catalog_text, "catalog")
        >>> await queue.join()
        >>> task.status
        <TaskStatus.DONE: 'done'>
    """

    def __init__(self, ingest: IngestFunction, max_history: int = 50):
        self._ingest = ingest
        self.max_history = max_history
        self._tasks: dict[str, IngestionTask] = {}
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    def submit(self, text: str, source_tag: str) -> IngestionTask:
        """Queue a document and return its task record immediately."""
        task = IngestionTask(source_tag=source_tag, text=text)
        self._tasks[task.id] = task
        self._ensure_worker()
        self._queue.put_nowait(task)
        logger.info(f"Queued ingestion task {task.id} for '{source_tag}'")
        return task

    def get(self, task_id: str) -> Optional[IngestionTask]:
        return self._tasks.get(task_id)

    def list_tasks(self) -> list[IngestionTask]:
        return list(self._tasks.values())

    def latest(self) -> Optional[IngestionTask]:
        """Most recently submitted task."""
        if not self._tasks:
            return None
        return next(reversed(self._tasks.values()))

    async def join(self) -> None:
        """Wait until every submitted task has finished."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        """Stop the worker; tasks still pending stay pending."""
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    def _prune(self) -> None:
        # Only finished tasks are dropped, oldest first
        finished = [t for t in self.list_tasks() if t.is_finished]
        for task in finished[: max(0, len(finished) - self.max_history)]:
            del self._tasks[task.id]

    def _ensure_worker(self) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            task = await self._queue.get()
            try:
                await self._execute(task)
            finally:
                self._queue.task_done()

    async def _execute(self, task: IngestionTask) -> None:
        task.status = TaskStatus.RUNNING
        task.started_at = datetime.now(timezone.utc)
        logger.info(f"Running ingestion task {task.id} for '{task.source_tag}'")

        try:
            task.vector_count = await self._ingest(
                task.text, task.source_tag, task.update_progress
            )
        except Exception as e:
            task.status = TaskStatus.FAILED
            task.error = str(e)
            logger.error(f"Ingestion task {task.id} failed: {e}")
        else:
            task.status = TaskStatus.DONE
            logger.info(f"Ingestion task {task.id} stored {task.vector_count} vectors")
        finally:
            task.finished_at = datetime.now(timezone.utc)
            task.text = ""
            self._prune()
