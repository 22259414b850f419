from __future__ import annotations

from typing import List, Optional, Sequence
import os
import matplotlib.pyplot as plt

from .core import TimelineEntry
from .utils import EventLogger


def ensure_dir(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def format_gantt(timeline: Sequence[TimelineEntry], cell_width: int = 4) -> str:
    """Render the timeline as a two-line text strip (labels over tick marks)."""
    if not timeline:
        return "(empty timeline)"
    bar = "|"
    ticks = ""
    for entry in timeline:
        width = max(len(entry.label) + 2, entry.duration * cell_width)
        bar += entry.label.center(width) + "|"
        ticks += str(entry.start).ljust(width + 1)
    ticks += str(timeline[-1].end)
    return f"{bar}\n{ticks}"


def plot_gantt(
    timeline: Sequence[TimelineEntry],
    logger: Optional[EventLogger] = None,
    out_path: Optional[str] = None,
    title: str = "Gantt Chart",
):
    """Draw the single-CPU Gantt chart; saves to ``out_path`` when given, else shows it."""
    fig, ax = plt.subplots(figsize=(max(6, 0.5 * (timeline[-1].end if timeline else 1)), 2.5))

    for entry in timeline:
        ax.barh(0, entry.duration, left=entry.start, color=entry.color, edgecolor="black", alpha=0.9)
        ax.text(entry.start + entry.duration / 2, 0, entry.label, ha="center", va="center", fontsize=9)

    # Annotate algorithm changes made while the run was in progress
    if logger is not None:
        for sw in logger.policy_switches:
            t = sw["time"]
            ax.axvline(t, color="#444444", linestyle="--", alpha=0.7)
            ax.text(t, 0.45, f"{sw.get('from', '?')} -> {sw.get('to', '?')}", rotation=90,
                    va="bottom", ha="center", fontsize=7)

    end = timeline[-1].end if timeline else 1
    ticks: List[int] = sorted({e.start for e in timeline} | {end})
    ax.set_xticks(ticks)
    ax.set_xlim(0, end)
    ax.set_yticks([])
    ax.set_xlabel("Time")
    ax.set_title(title)
    ax.grid(True, axis="x", linestyle=":", alpha=0.5)
    fig.tight_layout()

    if out_path:
        ensure_dir(out_path)
        fig.savefig(out_path, dpi=150)
        plt.close(fig)
    else:
        plt.show()
    return fig
