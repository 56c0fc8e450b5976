"""
Session API endpoints - the image currently open in the viewer
"""

import logging
import os
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional

from boxdrop.pipeline import RoiPipeline
from boxdrop.pixels import ImagePixelSource
from backend.config import ANNOTATION_DB_PATH

router = APIRouter()
logger = logging.getLogger(__name__)

# Pipeline for the image currently open
_current_pipeline: Optional[RoiPipeline] = None


class OpenSessionRequest(BaseModel):
    image_path: str
    db_path: Optional[str] = None


class SessionResponse(BaseModel):
    image_path: str
    db_path: str
    width: int
    height: int

    @classmethod
    def from_pipeline(cls, pipeline: RoiPipeline):
        width, height = pipeline.source.dimensions
        return cls(
            image_path=pipeline.source.identifier,
            db_path=pipeline.db_path,
            width=width,
            height=height,
        )


def get_pipeline() -> RoiPipeline:
    """Get the pipeline of the open image."""
    if _current_pipeline is None:
        raise HTTPException(status_code=400, detail="No image open")
    return _current_pipeline


def _close_current():
    global _current_pipeline

    if _current_pipeline is not None:
        _current_pipeline.close()
    _current_pipeline = None


@router.post("", response_model=SessionResponse)
async def open_session(request: OpenSessionRequest):
    """Open an image and prepare its ROI pipeline."""
    global _current_pipeline

    if not os.path.isfile(request.image_path):
        raise HTTPException(status_code=404, detail="Image not found")

    source = ImagePixelSource(request.image_path)
    try:
        source.dimensions
    except OSError as e:
        source.close()
        raise HTTPException(status_code=400, detail=f"Cannot read image: {e}")

    _close_current()
    _current_pipeline = RoiPipeline(source, db_path=request.db_path or ANNOTATION_DB_PATH)
    logger.info(f"Opened {request.image_path} (annotations in {_current_pipeline.db_path})")
    return SessionResponse.from_pipeline(_current_pipeline)


@router.get("/current", response_model=Optional[SessionResponse])
async def get_current_session():
    """Get the currently open image."""
    if _current_pipeline is None:
        return None
    return SessionResponse.from_pipeline(_current_pipeline)


@router.post("/close")
async def close_session():
    """Close the current image."""
    _close_current()
    return {"status": "closed"}
