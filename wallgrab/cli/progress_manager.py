"""
Rich Live display for a grab session: one metadata bar while sizes are
probed, then one transfer bar per asset being downloaded.
"""

import asyncio
import time

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.text import Text

from wallgrab.utils.formatting import format_duration, format_size


class ProgressManager:
    """
    Implements the reporter interface used by the download scheduler. With
    `enabled=False` nothing is drawn, but the counters are still kept so the
    summary panel can use them.
    """

    def __init__(self, console: Console, enabled: bool = True):
        self.console = console
        self.enabled = enabled

        self.metadata_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=48),
            MofNCompleteColumn(),
            TextColumn("[dim]{task.fields[total_size]}"),
            console=console,
        )
        self.transfer_progress = Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            BarColumn(bar_width=20),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console,
        )

        self._live: Live | None = None
        self._probe_task: TaskID | None = None
        self._transfers: dict[TaskID, str] = {}
        self._name_width = 0
        self._started_at: float | None = None
        self._counts = {
            "probed": 0,
            "total_assets": 0,
            "total_size": 0,
            "completed": 0,
            "failed": 0,
            "active_downloads": 0,
            "peak_concurrent": 0,
        }

    def _summary_line(self) -> Text:
        elapsed = time.monotonic() - self._started_at if self._started_at else 0
        c = self._counts
        line = Text.assemble(
            ("🌄 wallgrab", "bold cyan"),
            ("  │  ", "dim"),
            (format_duration(elapsed), "yellow"),
            ("  │  ", "dim"),
            (f"{c['completed']} done", "green"),
        )
        if c["failed"]:
            line.append(f", {c['failed']} failed", style="bold red")
        if c["total_size"]:
            line.append(f"  │  {format_size(c['total_size'])} catalog", style="dim")
        return line

    def _render(self) -> RenderableType:
        parts: list[RenderableType] = [self._summary_line()]
        if self._probe_task is not None:
            parts.append(self.metadata_progress)
        if self._transfers:
            parts.append(
                Panel(
                    self.transfer_progress,
                    title=f"[bold]Downloading ({len(self._transfers)})[/bold]",
                    border_style="green",
                )
            )
        return Group(*parts)

    # Size probing

    def start_probe(self, total: int) -> None:
        self._counts["total_assets"] = total
        if not self.enabled:
            return
        self._probe_task = self.metadata_progress.add_task(
            "(metadata)", total=total, total_size=""
        )

    def advance_probe(self) -> None:
        self._counts["probed"] += 1
        if self.enabled and self._probe_task is not None:
            self.metadata_progress.advance(self._probe_task)

    def finish_probe(self, total_size: int) -> None:
        self._counts["total_size"] = total_size
        if self.enabled and self._probe_task is not None:
            self.metadata_progress.update(
                self._probe_task, total_size=f"({format_size(total_size)})"
            )

    # Downloads

    def add_asset_task(self, description: str, total_size: int) -> TaskID | None:
        if not self.enabled:
            return None
        # Pad so that concurrent bars stay aligned
        self._name_width = max(self._name_width, len(description))
        task_id = self.transfer_progress.add_task(
            description.ljust(self._name_width), total=total_size
        )
        self._transfers[task_id] = description
        self._set_active()
        return task_id

    def update_task_progress(self, task_id: TaskID | None, completed: int) -> None:
        if task_id is not None and self.enabled:
            self.transfer_progress.update(task_id, completed=completed)

    def remove_task(self, task_id: TaskID | None, success: bool = True) -> None:
        self._counts["completed" if success else "failed"] += 1
        if task_id is None or task_id not in self._transfers:
            return
        self.transfer_progress.remove_task(task_id)
        self._transfers.pop(task_id)
        self._set_active()

    def _set_active(self) -> None:
        active = len(self._transfers)
        self._counts["active_downloads"] = active
        self._counts["peak_concurrent"] = max(self._counts["peak_concurrent"], active)

    def get_statistics(self) -> dict:
        return dict(self._counts)

    async def __aenter__(self) -> "ProgressManager":
        self._started_at = time.monotonic()
        if self.enabled:
            self._live = Live(
                console=self.console,
                refresh_per_second=10,
                get_renderable=self._render,
            )
            self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            # One last refresh so the final state is drawn
            await asyncio.sleep(0.1)
            self._live.stop()
            self._live = None
