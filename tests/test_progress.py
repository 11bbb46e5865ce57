"""
Tests for progress tracking and the rich display.
"""

import io

from rich.console import Console

from ai_i18n.core.models import ProcessingStats
from ai_i18n.utils.progress import ProgressDisplay, ProgressTracker, UnitStatus


class TestProgressTracker:
    """Tests for unit bookkeeping."""

    def test_transitions(self):
        """Test units move from pending to done or failed."""
        tracker = ProgressTracker()
        tracker.add_units(["a.ts", "b.ts", "c.ts"])
        tracker.start_unit("a.ts")
        tracker.set_stage("a.ts", "extracted")
        tracker.start_unit("b.ts")
        tracker.fail_unit("b.ts", "boom")

        counts = tracker.counts()
        assert counts[UnitStatus.RUNNING] == 1
        assert counts[UnitStatus.FAILED] == 1
        assert counts[UnitStatus.PENDING] == 1
        assert round(tracker.progress_percent, 1) == 33.3

        tracker.complete_unit("a.ts", texts=4)
        unit = [u for u in tracker.units() if u.name == "a.ts"][0]
        assert unit.status is UnitStatus.DONE
        assert unit.stage == "extracted"
        assert unit.texts == 4

    def test_visible_units_prioritize_running(self):
        """Test running units are listed before pending ones."""
        tracker = ProgressTracker()
        tracker.add_units(["a.ts", "b.ts", "c.ts"])
        tracker.start_unit("c.ts")

        visible = tracker.visible_units(max_display=2)

        assert [u.name for u in visible] == ["c.ts", "a.ts"]

    def test_elapsed_before_start(self):
        """Test elapsed time is zero before any unit starts."""
        assert ProgressTracker().elapsed_str == "00:00:00"


class TestProgressDisplay:
    """Tests for rendering."""

    def test_summary_lists_failures(self):
        """Test the summary panel shows counts and failed files."""
        output = io.StringIO()
        console = Console(file=output, width=100, force_terminal=False)
        tracker = ProgressTracker(title="i18n")
        display = ProgressDisplay(tracker, console=console)
        stats = ProcessingStats(
            units_processed=3,
            texts_extracted=12,
            texts_translated=10,
            texts_degraded=2,
            failed_units=["src/b.ts"],
            duration_ms=65_000,
        )

        display.print_summary(stats)

        text = output.getvalue()
        assert "Files written" in text
        assert "src/b.ts" in text
        assert "Kept untranslated" in text
        assert "00:01:05" in text

    def test_panel_renders(self):
        """Test the live panel renders with units in every state."""
        output = io.StringIO()
        console = Console(file=output, width=120, force_terminal=False)
        tracker = ProgressTracker(title="i18n")
        tracker.add_units([f"src/file{i}.ts" for i in range(4)])
        tracker.start_unit("src/file0.ts")
        tracker.complete_unit("src/file0.ts", texts=2)
        display = ProgressDisplay(tracker, max_display_units=2, console=console)

        console.print(display._build_panel())

        text = output.getvalue()
        assert "src/file0.ts" in text
        assert "... and 2 more" in text
