"""
ROI pipeline API endpoints
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Optional

from boxdrop.changes import ChangeFlags
from boxdrop.models import DEFAULT_DESCRIPTION, PipelineParameters, RoiRect
from backend.api.session import get_pipeline

router = APIRouter()


class ParametersResponse(BaseModel):
    size_default: int
    size_min: int
    size_max: int
    description_default: str
    allowed_extensions: list[str]


class ChangeFlagsRequest(BaseModel):
    description: bool = False
    region: bool = False
    export_requested: bool = False
    output_path: bool = False


class RunRequest(BaseModel):
    size: int = Field(..., ge=1)
    description: str = DEFAULT_DESCRIPTION
    region: Optional[list[tuple[float, float]]] = None
    export: bool = False
    output_path: str = ""
    # Host-reported change flags; tracked server-side when omitted
    changes: Optional[ChangeFlagsRequest] = None


class RoiResponse(BaseModel):
    x: int
    y: int
    size: int
    rotation: float
    anchor: str
    corners: list[tuple[float, float]]


class OverlayResponse(BaseModel):
    roi: RoiResponse
    name: str
    style: dict
    description: str


class RunResponse(BaseModel):
    changed: bool
    roi: Optional[RoiResponse] = None
    overlay: Optional[OverlayResponse] = None
    record_count: int
    report: str
    exported_path: Optional[str] = None
    export_error: Optional[str] = None


def roi_to_response(roi: RoiRect) -> RoiResponse:
    return RoiResponse(
        x=roi.x,
        y=roi.y,
        size=roi.size,
        rotation=roi.rotation,
        anchor=roi.anchor,
        corners=roi.corners(),
    )


@router.get("/parameters", response_model=ParametersResponse)
async def get_parameters():
    """Parameter defaults and bounds for the open image."""
    pipeline = get_pipeline()
    bounds = pipeline.bounds
    return ParametersResponse(
        size_default=bounds.default,
        size_min=bounds.minimum,
        size_max=bounds.maximum,
        description_default=DEFAULT_DESCRIPTION,
        allowed_extensions=list(pipeline.validator.allowed_extensions),
    )


@router.post("/run", response_model=RunResponse)
async def run_pipeline(request: RunRequest):
    """Place the ROI, reconcile stored annotations and export if requested."""
    pipeline = get_pipeline()

    params = PipelineParameters(
        size=request.size,
        description=request.description,
        region=request.region,
        export_requested=request.export,
        output_path=request.output_path,
    )
    flags = ChangeFlags(**request.changes.model_dump()) if request.changes else None

    try:
        result = pipeline.run(params, flags)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    overlay = None
    if result.overlay is not None:
        overlay = OverlayResponse(
            roi=roi_to_response(result.overlay.roi),
            name=result.overlay.name,
            style=result.overlay.style,
            description=result.overlay.description,
        )

    return RunResponse(
        changed=result.changed,
        roi=roi_to_response(result.roi) if result.roi else None,
        overlay=overlay,
        record_count=result.record_count,
        report=result.report,
        exported_path=result.exported_path,
        export_error=result.export_error,
    )


@router.post("/cancel")
async def cancel_run():
    """The user aborted the run; the export handle is rebuilt next time."""
    pipeline = get_pipeline()
    pipeline.cancel()
    return {"status": "cancelled"}
