"""
Annotation reconciliation.

The viewer stores a bare placeholder annotation as soon as the user finishes
drawing. After the ROI has been placed, the stored sequence looks like::

    ..., <placeholder "Rectangle 3", "">, <ROI "Rectangle 3", "Cellularity: 40">

This module appends the labelled ROI record and collapses such
placeholder/labelled pairs into the labelled record, leaving every other
record untouched and in order.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from boxdrop.models import AnnotationRecord, RoiRect

logger = logging.getLogger(__name__)

DESCRIPTION_PREFIX = "Cellularity: "
LABEL_MARKER = "Cellularity:"


@dataclass
class ReconcileResult:
    """Outcome of reconciling a stored sequence."""
    records: list[AnnotationRecord]
    appended: Optional[AnnotationRecord]
    dropped: int
    seen_count: int  # Records after appending, before collapsing


def roi_description(text: str) -> str:
    """Description stored on (and drawn with) a labelled ROI record."""
    return DESCRIPTION_PREFIX + text


def build_roi_record(
    template: AnnotationRecord,
    roi: RoiRect,
    text: str,
) -> AnnotationRecord:
    """
    Build the labelled record for ``roi``.

    Name, style and geometry kind are inherited from ``template``.
    """
    return AnnotationRecord(
        name=template.name,
        style=dict(template.style),
        geometry=template.geometry,
        points=[roi.corners()],
        description=roi_description(text),
    )


def supersedes(placeholder: AnnotationRecord, labelled: AnnotationRecord) -> bool:
    """True if ``labelled`` is the labelled version of ``placeholder``."""
    return (
        placeholder.is_placeholder
        and placeholder.name == labelled.name
        and LABEL_MARKER in labelled.description
    )


def collapse_placeholders(
    records: list[AnnotationRecord],
) -> tuple[list[AnnotationRecord], int]:
    """
    Drop placeholders that are immediately followed by their labelled record.

    Args:
        records: Ordered sequence

    Returns:
        Tuple of (kept records in order, number dropped)
    """
    kept = []
    dropped = 0
    i = 0
    while i < len(records):
        if i < len(records) - 1 and supersedes(records[i], records[i + 1]):
            # Keep the labelled record and skip past the pair
            i += 1
            dropped += 1
        kept.append(records[i])
        i += 1
    return kept, dropped


def reconcile(
    records: list[AnnotationRecord],
    roi: Optional[RoiRect],
    text: str,
) -> ReconcileResult:
    """
    Append the labelled ROI record (if any) and collapse placeholders.

    Args:
        records: Sequence loaded from the store
        roi: ROI computed this invocation, or None
        text: Description fragment configured by the user

    Returns:
        ReconcileResult with the sequence to write back
    """
    sequence = list(records)
    appended = None

    if roi is not None:
        if sequence:
            appended = build_roi_record(sequence[-1], roi, text)
            sequence.append(appended)
        else:
            logger.warning("No stored annotation to inherit from; ROI record not appended")

    seen_count = len(sequence)
    kept, dropped = collapse_placeholders(sequence)

    if dropped:
        logger.info(f"Collapsed {dropped} placeholder annotation(s)")

    return ReconcileResult(
        records=kept,
        appended=appended,
        dropped=dropped,
        seen_count=seen_count,
    )
