"""Rich-based progress tracking for analysis runs."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


@dataclass
class ProcessingStage:
    """Represents a single pipeline stage."""

    name: str
    status: str = "pending"  # pending, running, completed, failed
    start_time: float | None = None
    end_time: float | None = None
    details: str = ""

    @property
    def display_status(self) -> str:
        status_icons = {
            "pending": "⏸️",
            "running": "⏳",
            "completed": "✅",
            "failed": "❌",
        }
        return status_icons.get(self.status, "⏸️")

    @property
    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time or time.time()
        return end - self.start_time


@dataclass
class DocumentProgress:
    """Tracks progress for a single analysis."""

    label: str
    stages: list[ProcessingStage] = field(default_factory=list)
    overall_score: float | None = None

    def get_overall_progress(self) -> float:
        if not self.stages:
            return 0.0
        completed = sum(1 for s in self.stages if s.status == "completed")
        return completed / len(self.stages)

    @property
    def failed(self) -> bool:
        return any(stage.status == "failed" for stage in self.stages)


class RichProgressTracker:
    """Live stage display for one or more analyses."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.documents: list[DocumentProgress] = []
        self.current_idx: int = 0
        self._live: Live | None = None
        self._start_time: float = time.time()

    def start(self) -> None:
        self._live = Live(
            self._render(),
            console=self.console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()

    def stop(self) -> None:
        if self._live:
            self._live.stop()
            self._live = None

    def add_document(self, label: str, stages: list[str]) -> int:
        """Add a new analysis to track. Returns its index."""
        self.documents.append(
            DocumentProgress(
                label=label,
                stages=[ProcessingStage(name=name) for name in stages],
            )
        )
        return len(self.documents) - 1

    def update_stage(
        self,
        doc_idx: int,
        stage_name: str,
        status: str,
        details: str = "",
    ) -> None:
        for stage in self.documents[doc_idx].stages:
            if stage.name == stage_name:
                stage.status = status
                stage.details = details
                if status == "running" and stage.start_time is None:
                    stage.start_time = time.time()
                elif status in ("completed", "failed") and stage.end_time is None:
                    stage.end_time = time.time()
                break
        self.refresh()

    def update_score(self, doc_idx: int, overall_score: float) -> None:
        self.documents[doc_idx].overall_score = overall_score
        self.refresh()

    def refresh(self) -> None:
        if self._live:
            self._live.update(self._render())

    def _render(self) -> Panel:
        total_elapsed = time.time() - self._start_time
        finished = [d for d in self.documents if d.get_overall_progress() == 1.0]
        failed = [d for d in self.documents if d.failed]

        footer = Text()
        footer.append("📊 Analyses: ", style="bold yellow")
        footer.append(f"{len(self.documents)}", style="yellow")
        footer.append(f" | Completed: {len(finished)}", style="green")
        footer.append(f" | Failed: {len(failed)}", style="red")
        footer.append(f" | Elapsed: {self._format_time(total_elapsed)}", style="dim")

        content = Table(show_header=False, box=None, padding=(0, 0))
        content.add_column("Main", ratio=1)
        content.add_row(self._build_main_content())
        content.add_row(footer)

        return Panel(
            content,
            title="[bold blue]Originality Analysis[/bold blue]",
            border_style="blue",
        )

    def _build_main_content(self) -> Table:
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("Content", ratio=1)

        for idx, doc in enumerate(self.documents):
            is_current = idx == self.current_idx
            prefix = "▶️" if is_current else "  "

            header = Text(f"{prefix} 📄 {doc.label}")
            if doc.overall_score is not None:
                header.append(f"  score {doc.overall_score:.1f}%", style="dim")
            if is_current:
                header.stylize("bold cyan")
            table.add_row(header)

            for stage in doc.stages:
                table.add_row(self._format_stage(stage, is_current))

        return table

    def _format_stage(self, stage: ProcessingStage, is_active: bool) -> Text:
        indent = "   ├── " if is_active else "      "
        text = Text(f"{indent}{stage.display_status} {stage.name}")

        if stage.details:
            text.append(f"  ({stage.details})", style="dim")

        if stage.status == "running":
            text.append(f"  [{self._format_time(stage.elapsed)}]", style="dim")
            text.stylize("yellow")
        elif stage.status == "completed":
            text.stylize("green")
        elif stage.status == "failed":
            text.stylize("red")

        return text

    def _format_time(self, seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m{secs:02d}s"


class StageUpdater:
    """Helper to update stages for a specific analysis."""

    def __init__(self, tracker: RichProgressTracker, doc_idx: int) -> None:
        self.tracker = tracker
        self.doc_idx = doc_idx
        self.current: str | None = None

    def start(self, stage_name: str, details: str = "") -> None:
        self.current = stage_name
        self.tracker.update_stage(self.doc_idx, stage_name, "running", details)

    def complete(self, stage_name: str, details: str = "") -> None:
        self.tracker.update_stage(self.doc_idx, stage_name, "completed", details)

    def fail(self, stage_name: str, details: str = "") -> None:
        self.tracker.update_stage(self.doc_idx, stage_name, "failed", details)


class track_processing:
    """Context manager registering one analysis with the tracker."""

    STAGES = [
        "Reference Detection",
        "Literature Search",
        "Research Overview",
        "Novelty Analysis",
        "Assumptions",
        "Similarity Analysis",
        "Guidance",
        "Save Results",
    ]

    def __init__(self, label: str, tracker: RichProgressTracker):
        self.label = label
        self.tracker = tracker
        self.stage_updater: StageUpdater | None = None

    def __enter__(self) -> StageUpdater:
        doc_idx = self.tracker.add_document(self.label, self.STAGES)
        self.tracker.current_idx = doc_idx
        self.stage_updater = StageUpdater(self.tracker, doc_idx)
        return self.stage_updater

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None and self.stage_updater and self.stage_updater.current:
            self.stage_updater.fail(self.stage_updater.current, str(exc_val))
