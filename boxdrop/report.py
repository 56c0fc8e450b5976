"""
Text report for the last pipeline run.
"""

from typing import Iterable

LABEL_WIDTH = 20


def generate_report(
    size: int,
    name: str,
    overlay_count: int,
    status_lines: Iterable[str] = (),
) -> str:
    """
    Format the run summary.

    Args:
        size: ROI side length
        name: Display name of the processed annotation
        overlay_count: Number of overlays seen in the store this run
        status_lines: Extra lines (export results) appended verbatim

    Returns:
        Report text, one line per entry
    """
    lines = [
        f"{'ROI Size:':<{LABEL_WIDTH}}{size}x{size}",
        f"{'Processed Box:':<{LABEL_WIDTH}}{name}{overlay_count}",
    ]
    lines.extend(status_lines)
    return "\n".join(lines) + "\n"
