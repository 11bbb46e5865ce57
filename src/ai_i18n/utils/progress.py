"""
Progress tracking and visualization for concurrent work-unit processing.

This module provides a live terminal view of a pipeline run: an overall
progress bar, timing information and a table of the files currently being
processed with the state each one has reached.

Components:
    - UnitStatus: Enum of display states (PENDING, RUNNING, DONE, FAILED)
    - UnitProgress: Dataclass tracking one work unit
    - ProgressTracker: Thread-safe tracker of every unit of the run
    - ProgressDisplay: Rich-based live panel and final summary

Example:
    tracker = ProgressTracker(title="Extracting texts")
    display = ProgressDisplay(tracker)
    orchestrator = Orchestrator.from_config(config, tracker=tracker)

    display.start()
    try:
        stats = await orchestrator.process_all()
    finally:
        display.stop()
    display.print_summary(stats)

Author: ai-i18n contributors
License: MIT
"""

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.models import ProcessingStats


class UnitStatus(Enum):
    """Display status of a work unit."""
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


def _format_duration(duration: Optional[timedelta]) -> str:
    """Format a duration as HH:MM:SS."""
    if duration is None:
        return "-"
    total_seconds = int(duration.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


@dataclass
class UnitProgress:
    """
    Progress of one work unit.

    Attributes:
        name: Relative path of the unit.
        status: Current display status.
        stage: Last pipeline state reached (e.g. "extracted").
        start_time: When processing started (None if pending).
        end_time: When processing ended (None if not finished).
        texts: Number of texts extracted, once known.
        error: Failure description if the unit failed.
    """
    name: str
    status: UnitStatus = UnitStatus.PENDING
    stage: str = "scanned"
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    texts: Optional[int] = None
    error: Optional[str] = None

    @property
    def duration(self) -> Optional[timedelta]:
        """Calculate unit duration."""
        if self.start_time is None:
            return None
        end = self.end_time or datetime.now()
        return end - self.start_time


class ProgressTracker:
    """
    Thread-safe tracker of work-unit progress.

    The orchestrator reports transitions from the event loop while the live
    display reads from its refresh thread, so every access holds the lock.

    Args:
        title: Title displayed in the progress header.
    """

    def __init__(self, title: str = "Processing files"):
        self.title = title
        self._units: Dict[str, UnitProgress] = {}
        self._lock = threading.Lock()
        self._start_time: Optional[datetime] = None

    def add_units(self, names: Iterable[str]) -> None:
        """Register units as pending."""
        with self._lock:
            for name in names:
                self._units[name] = UnitProgress(name=name)

    def start_unit(self, name: str) -> None:
        """Mark a unit as running."""
        with self._lock:
            now = datetime.now()
            if self._start_time is None:
                self._start_time = now
            unit = self._units.setdefault(name, UnitProgress(name=name))
            unit.status = UnitStatus.RUNNING
            unit.start_time = now

    def set_stage(self, name: str, stage: str) -> None:
        """Record the pipeline state a running unit has reached."""
        with self._lock:
            if name in self._units:
                self._units[name].stage = stage

    def complete_unit(self, name: str, texts: int = 0) -> None:
        """Mark a unit as written."""
        with self._lock:
            if name in self._units:
                unit = self._units[name]
                unit.status = UnitStatus.DONE
                unit.end_time = datetime.now()
                unit.texts = texts

    def fail_unit(self, name: str, error: str) -> None:
        """Mark a unit as failed."""
        with self._lock:
            if name in self._units:
                unit = self._units[name]
                unit.status = UnitStatus.FAILED
                unit.end_time = datetime.now()
                unit.error = error

    def units(self) -> List[UnitProgress]:
        """Return a consistent copy of every unit's progress."""
        with self._lock:
            return [replace(unit) for unit in self._units.values()]

    def counts(self) -> Dict[UnitStatus, int]:
        """Return the number of units per status."""
        counts = {status: 0 for status in UnitStatus}
        for unit in self.units():
            counts[unit.status] += 1
        return counts

    @property
    def total_units(self) -> int:
        with self._lock:
            return len(self._units)

    @property
    def progress_percent(self) -> float:
        """Overall progress as a percentage."""
        counts = self.counts()
        total = sum(counts.values())
        if total == 0:
            return 0.0
        return (counts[UnitStatus.DONE] + counts[UnitStatus.FAILED]) / total * 100

    @property
    def elapsed_str(self) -> str:
        """Format elapsed time as HH:MM:SS."""
        with self._lock:
            start = self._start_time
        if start is None:
            return "00:00:00"
        return _format_duration(datetime.now() - start)

    def visible_units(self, max_display: int = 15) -> List[UnitProgress]:
        """
        Get units to display, prioritizing running and recently finished.

        Args:
            max_display: Maximum number of units to return.
        """
        units = self.units()
        finished_recently = sorted(
            (u for u in units if u.status in (UnitStatus.DONE, UnitStatus.FAILED)),
            key=lambda u: u.end_time or datetime.min,
            reverse=True,
        )
        running = [u for u in units if u.status is UnitStatus.RUNNING]
        pending = [u for u in units if u.status is UnitStatus.PENDING]
        return (running + finished_recently + pending)[:max_display]


class ProgressDisplay:
    """
    Rich-based live display of a ProgressTracker.

    The panel is rebuilt by rich's refresh thread from the tracker, so the
    orchestrator only has to report transitions.
    """

    STATUS_ICONS = {
        UnitStatus.PENDING: ("○", "dim"),
        UnitStatus.RUNNING: ("●", "yellow"),
        UnitStatus.DONE: ("✓", "green"),
        UnitStatus.FAILED: ("✗", "red"),
    }

    def __init__(
        self,
        tracker: ProgressTracker,
        max_display_units: int = 15,
        refresh_rate: float = 0.5,
        console: Optional[Console] = None,
    ):
        self.tracker = tracker
        self.max_display_units = max_display_units
        self.refresh_rate = refresh_rate
        self.console = console or Console()
        self._live: Optional[Live] = None

    def _build_progress_bar(self) -> str:
        """Build ASCII progress bar."""
        width = 40
        percent = self.tracker.progress_percent
        filled = int(width * percent / 100)
        return f"[{'█' * filled}{'░' * (width - filled)}] {percent:.1f}%"

    def _build_table(self) -> Table:
        """Build the unit status table."""
        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("File", style="cyan", no_wrap=True, ratio=3)
        table.add_column("Status", justify="center", width=12)
        table.add_column("Stage", width=14)
        table.add_column("Texts", justify="right", width=8)
        table.add_column("Time", justify="right", width=10)

        visible = self.tracker.visible_units(self.max_display_units)
        for unit in visible:
            icon, style = self.STATUS_ICONS[unit.status]
            table.add_row(
                unit.name,
                Text(f"{icon} {unit.status.value.title()}", style=style),
                unit.stage,
                "-" if unit.texts is None else str(unit.texts),
                _format_duration(unit.duration),
            )

        # Add summary row if there are hidden units
        hidden_count = self.tracker.total_units - len(visible)
        if hidden_count > 0:
            table.add_row(f"... and {hidden_count} more", "", "", "", "", style="dim")

        return table

    def _build_panel(self) -> Panel:
        """Build the complete progress panel."""
        counts = self.tracker.counts()
        finished = counts[UnitStatus.DONE] + counts[UnitStatus.FAILED]
        header = "\n".join([
            f"[bold]{self.tracker.title}[/bold]",
            "",
            f"Progress: {self._build_progress_bar()} ({finished}/{self.tracker.total_units})",
            f"Active: {counts[UnitStatus.RUNNING]} | Written: {counts[UnitStatus.DONE]} | "
            f"Failed: {counts[UnitStatus.FAILED]} | Remaining: {counts[UnitStatus.PENDING]}",
            f"Time: {self.tracker.elapsed_str} elapsed",
            "",
        ])
        return Panel(Group(Text.from_markup(header), self._build_table()), border_style="blue")

    def start(self) -> None:
        """Start the live display."""
        self._live = Live(
            get_renderable=self._build_panel,
            console=self.console,
            refresh_per_second=1 / self.refresh_rate,
            transient=False,
        )
        self._live.start()

    def stop(self) -> None:
        """Stop the live display."""
        if self._live:
            self._live.stop()
            self._live = None

    def print_summary(self, stats: ProcessingStats) -> None:
        """Print the final run summary."""
        failed = len(stats.failed_units)

        summary_table = Table(show_header=False, box=None)
        summary_table.add_column("Metric", style="bold")
        summary_table.add_column("Value")

        summary_table.add_row("Files written", f"[green]{stats.units_processed}[/green]")
        if failed:
            summary_table.add_row("Files failed", f"[red]{failed}[/red]")
        summary_table.add_row("Texts extracted", str(stats.texts_extracted))
        summary_table.add_row("Texts translated", str(stats.texts_translated))
        if stats.texts_degraded:
            summary_table.add_row("Kept untranslated", f"[yellow]{stats.texts_degraded}[/yellow]")
        if stats.warnings:
            summary_table.add_row("Warnings", f"[yellow]{len(stats.warnings)}[/yellow]")
        summary_table.add_row("Total time", _format_duration(timedelta(milliseconds=stats.duration_ms)))

        for path in stats.failed_units:
            summary_table.add_row("", f"[red]✗ {path}[/red]")

        self.console.print(Panel(
            summary_table,
            title=f"[bold]{self.tracker.title} Complete[/bold]",
            border_style="green" if failed == 0 else "yellow",
        ))
