"""
BoxDrop - ROI placement, annotation reconciliation and validated export
"""

__version__ = "0.1.0"

from boxdrop.models import (
    AnnotationRecord, RoiRect, PipelineParameters, ParameterBounds, PipelineResult,
)
from boxdrop.store import AnnotationStore
from boxdrop.extent import compute_roi
from boxdrop.reconcile import reconcile, collapse_placeholders
from boxdrop.changes import ChangeFlags, ParameterTracker, detect_changes
from boxdrop.export import (
    ExportValidator, RegionExporter, check_file,
    ExportError, BlankDestination, UnwritableDestination, InvalidExtension, ExportWriteFailure,
)
from boxdrop.pixels import ImagePixelSource
from boxdrop.report import generate_report
from boxdrop.pipeline import RoiPipeline

__all__ = [
    "AnnotationRecord", "RoiRect", "PipelineParameters", "ParameterBounds", "PipelineResult",
    "AnnotationStore",
    "compute_roi",
    "reconcile", "collapse_placeholders",
    "ChangeFlags", "ParameterTracker", "detect_changes",
    "ExportValidator", "RegionExporter", "check_file",
    "ExportError", "BlankDestination", "UnwritableDestination", "InvalidExtension",
    "ExportWriteFailure",
    "ImagePixelSource",
    "generate_report",
    "RoiPipeline",
]
