"""
ROI pipeline - one invocation per user action.

Each run:

1. decides whether anything changed since the previous run
2. places the ROI on the user-drawn region (only when changed)
3. loads, reconciles and persists the image's annotation sequence
4. exports the ROI pixels if requested (only when changed)
5. formats the report
"""

import logging
from typing import Optional

from boxdrop.changes import ChangeFlags, ParameterTracker, detect_changes
from boxdrop.export import ExportError, ExportValidator, RegionExporter
from boxdrop.extent import compute_roi
from boxdrop.models import (
    InvocationContext, OverlayRect, ParameterBounds, PipelineParameters, PipelineResult,
)
from boxdrop.pixels import PixelSource
from boxdrop.reconcile import reconcile
from boxdrop.report import generate_report
from boxdrop.store import AnnotationStore, default_db_path

logger = logging.getLogger(__name__)


class RoiPipeline:
    """
    Places, stores and exports ROIs for a single image.

    The pipeline owns the cached export handle and the change tracker; all
    other state lives in a per-run InvocationContext.
    """

    def __init__(
        self,
        source: PixelSource,
        db_path: Optional[str] = None,
        validator: Optional[ExportValidator] = None,
    ):
        """
        Args:
            source: Pixel source of the image being annotated
            db_path: Annotation database; defaults to a sidecar next to the image
            validator: Export validator (built with the default extensions if None)
        """
        self.source = source
        self.db_path = db_path or default_db_path(source.identifier)
        self.validator = validator or ExportValidator()
        self.tracker = ParameterTracker()
        self._exporter: Optional[RegionExporter] = None

    @property
    def bounds(self) -> ParameterBounds:
        width, height = self.source.dimensions
        return ParameterBounds.for_image(width, height)

    @property
    def has_export_handle(self) -> bool:
        return self._exporter is not None

    def set_source(self, source: PixelSource) -> None:
        """Switch to another pixel source, dropping the handle bound to the old one."""
        if source is not self.source:
            if self._exporter is not None:
                self._drop_exporter()
            else:
                self.source.close()
            self.source = source

    def cancel(self) -> None:
        """The user aborted a run: the next run must rebuild the export handle."""
        logger.info("Run cancelled, dropping export handle")
        self._drop_exporter()

    def close(self) -> None:
        self._drop_exporter()
        self.source.close()

    def run(
        self,
        params: PipelineParameters,
        flags: Optional[ChangeFlags] = None,
    ) -> PipelineResult:
        """
        Run the pipeline once.

        Args:
            params: Current parameter values
            flags: Host-reported change flags; derived from the previous run if None

        Returns:
            PipelineResult with the report text

        Raises:
            ValueError: If the ROI size is out of bounds for the image
        """
        self.bounds.check(params.size)

        if flags is None:
            flags = self.tracker.flags_for(params)
        changed = detect_changes(flags, self.has_export_handle)
        exporter = self._ensure_exporter()

        ctx = InvocationContext()
        if changed:
            ctx.roi = compute_roi(params.region, params.size)

        with AnnotationStore.session(self.db_path, self.source.identifier) as store:
            records = store.load()
            result = reconcile(records, ctx.roi, params.description)
            store.replace(result.records)
            store.persist()

        ctx.overlay_count = result.seen_count
        if result.appended is not None:
            ctx.name = result.appended.name
            ctx.style = result.appended.style
        elif result.records:
            ctx.name = result.records[-1].name

        overlay = None
        exported_path = None
        export_error = None
        if changed:
            if result.appended is not None:
                overlay = OverlayRect(
                    roi=ctx.roi,
                    name=ctx.name,
                    style=ctx.style,
                    description=result.appended.description,
                )
                logger.info(f"Placed ROI {ctx.roi.box} on '{ctx.name}'")
            try:
                exported_path = self._export(exporter, params, ctx)
            except ExportError as e:
                logger.warning(f"Export skipped: {e}")
                export_error = str(e)
                ctx.status_lines.append(export_error)

        self.tracker.commit(params)

        return PipelineResult(
            changed=changed,
            roi=ctx.roi,
            overlay=overlay,
            record_count=len(result.records),
            report=generate_report(params.size, ctx.name, ctx.overlay_count, ctx.status_lines),
            exported_path=exported_path,
            export_error=export_error,
        )

    def _export(
        self,
        exporter: RegionExporter,
        params: PipelineParameters,
        ctx: InvocationContext,
    ) -> Optional[str]:
        if not self.validator.validate(params):
            return None
        if ctx.roi is None:
            ctx.status_lines.append("No region of interest to export.")
            return None
        destination = exporter.export(ctx.roi, params.output_path)
        ctx.status_lines.append(f"Region saved to {destination}")
        return str(destination)

    def _ensure_exporter(self) -> RegionExporter:
        if self._exporter is None:
            self._exporter = RegionExporter(self.source, self.validator)
        return self._exporter

    def _drop_exporter(self) -> None:
        if self._exporter is not None:
            self._exporter.close()
            self._exporter = None
