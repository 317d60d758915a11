"""Worker pool that drives parallel compiler invocations.

Work and results flow through two bounded queues sized to the worker count.
The producer (the caller of :meth:`CompileScheduler.run`) fills the work
queue and then closes it with one marker per worker. Every worker pulls until
it sees its marker, compiles, and pushes a result. A single aggregator thread
drains the result queue concurrently, so workers never block on a full result
queue for long. Shutdown order is fixed: close work, join workers, close
results, join aggregator.
"""

from __future__ import annotations

import os
import queue
import threading
from collections.abc import Callable, Iterable
from typing import cast

from papy.compiler import Compiler
from papy.errors import SchedulerError
from papy.models import CompileReport, CompilerResult, WorkItem
from papy.observability import StructuredLogger

ResultCallback = Callable[[CompilerResult], None]

# End-of-stream marker; each consumer receives exactly one.
_CLOSED = object()


def default_worker_count() -> int:
    return os.cpu_count() or 1


class _Worker(threading.Thread):
    def __init__(
        self,
        index: int,
        compiler: Compiler,
        work: queue.Queue[object],
        results: queue.Queue[object],
        abort: threading.Event,
    ) -> None:
        super().__init__(name=f"papy-worker-{index}")
        self.compiler = compiler
        self.work = work
        self.results = results
        self.abort = abort
        self.fault: Exception | None = None

    def run(self) -> None:
        while True:
            item = self.work.get()
            if item is _CLOSED:
                break
            if self.abort.is_set():
                # Keep draining so the producer never blocks on a full queue.
                continue
            try:
                result = self.compiler.compile(cast(WorkItem, item))
            except Exception as exc:
                self.fault = exc
                self.abort.set()
                continue
            self.results.put(result)


class _Aggregator(threading.Thread):
    def __init__(
        self,
        results: queue.Queue[object],
        abort: threading.Event,
        logger: StructuredLogger | None,
        on_result: ResultCallback | None,
    ) -> None:
        super().__init__(name="papy-results")
        self.queue = results
        self.abort = abort
        self.logger = logger
        self.on_result = on_result
        self.results: list[CompilerResult] = []
        self.fault: Exception | None = None

    def run(self) -> None:
        while True:
            payload = self.queue.get()
            if payload is _CLOSED:
                break
            result = cast(CompilerResult, payload)
            self.results.append(result)
            if self.fault is not None:
                continue
            try:
                self._log(result)
                if self.on_result is not None:
                    self.on_result(result)
            except Exception as exc:
                self.fault = exc
                self.abort.set()

    def _log(self, result: CompilerResult) -> None:
        if self.logger is None:
            return
        if result.error is None:
            self.logger.log(
                operation="compile",
                source=result.source_path,
                destination=result.item.destination_folder,
                message="compiled",
            )
        else:
            self.logger.log(
                operation="compile",
                source=result.source_path,
                destination=result.item.destination_folder,
                message=str(result.error),
                level="error",
                extra={"command": result.command, "output": result.output},
            )


class CompileScheduler:
    """Bounded fan-out/fan-in over a :class:`~papy.compiler.Compiler`."""

    def __init__(
        self,
        compiler: Compiler,
        *,
        workers: int | None = None,
        logger: StructuredLogger | None = None,
        on_result: ResultCallback | None = None,
    ) -> None:
        self.compiler = compiler
        self.workers = workers if workers is not None and workers > 0 else default_worker_count()
        self.logger = logger
        self.on_result = on_result

    def run(self, items: Iterable[WorkItem]) -> CompileReport:
        """Compile every item once; returns after all results were aggregated."""
        work: queue.Queue[object] = queue.Queue(maxsize=self.workers)
        results: queue.Queue[object] = queue.Queue(maxsize=self.workers)
        abort = threading.Event()

        aggregator = _Aggregator(results, abort, self.logger, self.on_result)
        _start(aggregator)

        workers: list[_Worker] = []
        dispatched = 0
        try:
            for index in range(self.workers):
                worker = _Worker(index, self.compiler, work, results, abort)
                _start(worker)
                workers.append(worker)
            if self.logger is not None:
                self.logger.log(
                    operation="schedule",
                    message=f"started {len(workers)} worker(s) using {self.compiler.name}",
                )

            for item in items:
                if abort.is_set():
                    break
                work.put(item)
                dispatched += 1
        finally:
            for _ in workers:
                work.put(_CLOSED)
            for worker in workers:
                worker.join()
            results.put(_CLOSED)
            aggregator.join()

        faults = [w.fault for w in workers if w.fault is not None]
        if aggregator.fault is not None:
            faults.append(aggregator.fault)
        if faults:
            raise SchedulerError(
                "Compilation pipeline aborted by an unexpected error.",
                hint=f"{type(faults[0]).__name__}: {faults[0]}",
                context={
                    "operation": "schedule",
                    "dispatched": str(dispatched),
                    "completed": str(len(aggregator.results)),
                },
            ) from faults[0]

        report = CompileReport(results=tuple(aggregator.results), dispatched=dispatched)
        if self.logger is not None:
            failed = len(report.failures)
            self.logger.log(
                operation="schedule",
                message=f"{len(report.results) - failed} compiled, {failed} failed",
            )
        return report


def _start(thread: threading.Thread) -> None:
    try:
        thread.start()
    except RuntimeError as exc:
        raise SchedulerError(
            f"Cannot start thread {thread.name}.",
            hint=str(exc),
            context={"operation": "schedule"},
        ) from exc
