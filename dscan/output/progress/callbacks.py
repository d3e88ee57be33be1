from typing import Any

from rich.progress import Progress, TaskID

from dscan.core.protocols import ProgressCallback

WARNING_PREFIX = "Warning: "


class RichProgressCallback(ProgressCallback):
    """
    Shows scan status as the description of a rich progress task.

    Warnings are printed above the live display instead, so they survive a
    transient progress bar.
    """

    def __init__(self, progress: Progress, task_id: TaskID) -> None:
        self.progress = progress
        self.task_id = task_id
        self.warnings = 0

    def update(self, message: str, **fields: Any) -> None:
        if message.startswith(WARNING_PREFIX):
            self.warnings += 1
            self.progress.console.print(message, style="yellow", markup=False, highlight=False)
            return
        self.progress.update(self.task_id, description=message, **fields)


class NoOpProgressCallback(ProgressCallback):
    def update(self, message: str, **fields: Any) -> None:
        pass
