"""Rich progress display driven by optimizer events."""

from __future__ import annotations

from types import TracebackType
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressReporter:
    """Translate ``optimize:*`` / ``file:*`` events into progress bars.

    Use as a context manager and pass ``emit`` as the ``on_progress`` callback.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._tasks: dict[str, TaskID] = {}
        self._totals: dict[str, int] = {}
        self.failures: list[str] = []
        self.summary: dict[str, int] = {}

    def __enter__(self) -> ProgressReporter:
        self.progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.progress.stop()

    def add_step(self, description: str, total: int | None = None) -> TaskID:
        return self.progress.add_task(description, total=total)

    def finish_task(self, task_id: TaskID) -> None:
        task = self.progress.tasks[self.progress.task_ids.index(task_id)]
        if task.total is not None:
            self.progress.update(task_id, completed=task.total)
        self.progress.remove_task(task_id)

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        if event == "optimize:start":
            total = int(payload.get("files", 0))
            self._totals["files"] = total
            self._tasks["files"] = self.add_step("Optimizing images", total=total)
        elif event in ("file:done", "file:failed"):
            task_id = self._tasks.get("files")
            if event == "file:failed":
                self.failures.append(str(payload.get("file", "")))
            if task_id is not None:
                self.progress.update(
                    task_id,
                    advance=1,
                    description=f"Optimizing images ({payload.get('file', '')})",
                )
        elif event == "optimize:finalized":
            self.summary = {k: int(v) for k, v in payload.items()}
            task_id = self._tasks.pop("files", None)
            if task_id is not None:
                self.finish_task(task_id)


__all__ = ["ProgressReporter"]
