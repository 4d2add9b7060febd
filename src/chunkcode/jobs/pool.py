"""Bounded worker pool of isolated engine handles.

The pool owns a fixed array of engine handles indexed by slot id. Each
handle has its own workspace, so tasks running in different slots never
share engine state or virtual filesystem entries.

Dispatch rules:
- submit() dispatches to an idle slot immediately, otherwise the task waits
  in a FIFO queue.
- Idle slots are picked round-robin over slot index.
- When a slot settles a task it takes the next queued task itself, so a
  queued task starts as soon as any slot frees up.
- At most one task runs per slot, so at most len(slots) run at once.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass
from typing import Generic, TypeVar

from chunkcode.exceptions import PoolTerminated
from chunkcode.executor.interface import Engine

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PoolSlot:
    """One engine handle and its private workspace, owned by the pool."""

    slot_id: int
    engine: Engine
    busy: bool = False
    tasks_run: int = 0


@dataclass
class _QueuedTask(Generic[T]):
    task: Callable[[PoolSlot], T]
    future: Future[T]


class WorkerPool:
    """Fixed-size pool running tasks on isolated engine handles.

    Tasks are callables taking the PoolSlot they run on. A task that raises
    resolves only its own future with the exception; the slot and the other
    slots keep running.

    Example:
        with WorkerPool.create(3, make_engine) as pool:
            futures = [pool.submit(task) for task in tasks]
            for future in as_completed(futures):
                ...
    """

    def __init__(self, engines: Sequence[Engine]) -> None:
        """Initialize the pool with pre-built engine handles.

        Args:
            engines: One engine per slot; slot ids follow the sequence order.

        Raises:
            ValueError: If no engines are given.
        """
        if not engines:
            raise ValueError("WorkerPool needs at least one engine")
        self._slots = [PoolSlot(slot_id=i, engine=e) for i, e in enumerate(engines)]
        self._pending: deque[_QueuedTask] = deque()
        self._running: dict[int, Future] = {}
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._cursor = 0
        self._terminated = False
        self._closed = False

    @classmethod
    def create(cls, size: int, engine_factory: Callable[[int], Engine]) -> WorkerPool:
        """Build a pool, creating one engine per slot.

        Args:
            size: Number of slots (W).
            engine_factory: Called with each slot id to build its engine.

        Raises:
            ValueError: If size is less than 1.
        """
        if size < 1:
            raise ValueError(f"pool size must be >= 1, got {size}")
        engines: list[Engine] = []
        try:
            for slot_id in range(size):
                engines.append(engine_factory(slot_id))
        except Exception:
            for engine in engines:
                engine.close()
            raise
        return cls(engines)

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.terminate_all()
        self.close()

    @property
    def size(self) -> int:
        return len(self._slots)

    @property
    def slots(self) -> tuple[PoolSlot, ...]:
        return tuple(self._slots)

    @property
    def active_count(self) -> int:
        """Number of tasks currently executing."""
        with self._lock:
            return sum(1 for slot in self._slots if slot.busy)

    @property
    def queued_count(self) -> int:
        """Number of submitted tasks waiting for a slot."""
        with self._lock:
            return len(self._pending)

    @property
    def terminated(self) -> bool:
        return self._terminated

    def submit(self, task: Callable[[PoolSlot], T]) -> Future[T]:
        """Schedule a task on the next idle slot, or queue it.

        Args:
            task: Callable run with the slot it was dispatched to.

        Returns:
            Future resolved with the task's return value or exception.

        Raises:
            PoolTerminated: If the pool was terminated.
            RuntimeError: If the pool was closed.
        """
        future: Future[T] = Future()
        with self._lock:
            if self._terminated:
                raise PoolTerminated("Cannot submit to a terminated pool")
            if self._closed:
                raise RuntimeError("Cannot submit to a closed pool")

            slot = self._claim_idle_slot()
            if slot is None:
                self._pending.append(_QueuedTask(task, future))
                logger.debug(
                    "All %d slots busy, queued task (%d waiting)",
                    len(self._slots),
                    len(self._pending),
                )
                return future

            future.set_running_or_notify_cancel()
            self._running[slot.slot_id] = future
            thread = threading.Thread(
                target=self._work,
                args=(slot, task, future),
                daemon=True,
                name=f"pool-slot-{slot.slot_id:02d}",
            )
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
            thread.start()
        return future

    def _claim_idle_slot(self) -> PoolSlot | None:
        """Mark the next idle slot (round-robin from the cursor) busy.

        Must be called with the lock held.
        """
        count = len(self._slots)
        for offset in range(count):
            slot = self._slots[(self._cursor + offset) % count]
            if not slot.busy:
                slot.busy = True
                self._cursor = (slot.slot_id + 1) % count
                return slot
        return None

    def _next_task(self, slot: PoolSlot) -> _QueuedTask | None:
        """Hand the next queued task to a slot that just settled one.

        Must be called with the lock held. Queued futures cancelled by their
        owner are skipped. Returns None and frees the slot if nothing is
        left to run.
        """
        self._running.pop(slot.slot_id, None)
        while self._pending and not self._terminated:
            queued = self._pending.popleft()
            if queued.future.set_running_or_notify_cancel():
                self._running[slot.slot_id] = queued.future
                return queued
        slot.busy = False
        return None

    def _work(
        self, slot: PoolSlot, task: Callable[[PoolSlot], T], future: Future[T]
    ) -> None:
        """Slot thread body: run tasks until the queue is drained."""
        current: _QueuedTask | None = _QueuedTask(task, future)
        while current is not None:
            self._execute(slot, current)
            with self._lock:
                current = self._next_task(slot)

    def _execute(self, slot: PoolSlot, queued: _QueuedTask) -> None:
        slot.tasks_run += 1
        try:
            result = queued.task(slot)
        except BaseException as e:
            # Non-Exception errors are settled too so the slot keeps draining
            if not self._terminated:
                logger.error(
                    "Task on slot %d raised: %s", slot.slot_id, e, exc_info=True
                )
            self._settle(queued.future, exception=e)
        else:
            self._settle(queued.future, result=result)

    @staticmethod
    def _settle(
        future: Future, result: object = None, exception: BaseException | None = None
    ) -> None:
        """Resolve a future unless terminate_all() already resolved it."""
        try:
            if exception is not None:
                future.set_exception(exception)
            else:
                future.set_result(result)
        except InvalidStateError:
            logger.debug("Discarding outcome of an abandoned task")

    def terminate_all(self) -> None:
        """Tear down every slot immediately, abandoning in-flight work.

        Running engine invocations are killed first, then queued and running
        futures resolve with PoolTerminated. Further submits are refused.
        """
        with self._lock:
            if self._terminated:
                return
            self._terminated = True
            abandoned = [queued.future for queued in self._pending]
            abandoned.extend(self._running.values())
            self._pending.clear()

        logger.info("Terminating worker pool (%d tasks abandoned)", len(abandoned))
        for slot in self._slots:
            slot.engine.terminate()
        for future in abandoned:
            self._settle(future, exception=PoolTerminated("Worker pool was terminated"))

    def purge(self, prefix: str = "") -> None:
        """Delete workspace entries left in every slot.

        Args:
            prefix: Only delete entries whose name starts with this prefix.
        """
        for slot in self._slots:
            workspace = slot.engine.workspace
            leftovers = [
                name for name in workspace.list_dir() if name.startswith(prefix)
            ]
            if leftovers:
                logger.debug(
                    "Purging %d entries from slot %d", len(leftovers), slot.slot_id
                )
                workspace.discard(*leftovers)

    def close(self, wait: bool = True) -> None:
        """Refuse new tasks, optionally wait for queued work, close engines.

        Args:
            wait: Wait for running and queued tasks to settle first.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            threads = list(self._threads)

        if wait:
            for thread in threads:
                thread.join()
        else:
            self.terminate_all()

        for slot in self._slots:
            try:
                slot.engine.close()
            except OSError as e:
                logger.warning("Could not close engine of slot %d: %s", slot.slot_id, e)
