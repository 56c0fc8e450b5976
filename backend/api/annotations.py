"""
Annotations API endpoints
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from boxdrop.models import AnnotationRecord
from boxdrop.store import AnnotationStore
from backend.api.session import get_pipeline

router = APIRouter()


class AnnotationResponse(BaseModel):
    id: int
    name: str
    style: dict
    geometry: str
    points: list[list[tuple[float, float]]]
    description: str


class CreateAnnotationRequest(BaseModel):
    name: str
    style: dict = {}
    geometry: str = "rectangle"
    points: list[list[tuple[float, float]]]
    description: str = ""


def record_to_response(record: AnnotationRecord) -> AnnotationResponse:
    """Convert AnnotationRecord to AnnotationResponse."""
    return AnnotationResponse(
        id=record.id,
        name=record.name,
        style=record.style,
        geometry=record.geometry,
        points=record.points,
        description=record.description,
    )


@router.get("", response_model=list[AnnotationResponse])
async def list_annotations():
    """List stored annotations of the open image, in order."""
    pipeline = get_pipeline()
    with AnnotationStore.session(pipeline.db_path, pipeline.source.identifier) as store:
        records = store.load()
    return [record_to_response(rec) for rec in records]


@router.post("", response_model=AnnotationResponse)
async def create_annotation(request: CreateAnnotationRequest):
    """Append an annotation (the viewer does this when drawing finishes)."""
    pipeline = get_pipeline()

    if not request.points or not any(request.points):
        raise HTTPException(status_code=400, detail="Annotation has no points")

    with AnnotationStore.session(pipeline.db_path, pipeline.source.identifier) as store:
        record = store.append(AnnotationRecord(
            name=request.name,
            style=request.style,
            geometry=request.geometry,
            points=[[tuple(p) for p in polygon] for polygon in request.points],
            description=request.description,
        ))
    return record_to_response(record)


@router.delete("/{annotation_id}")
async def delete_annotation(annotation_id: int):
    """Delete an annotation."""
    pipeline = get_pipeline()

    with AnnotationStore.session(pipeline.db_path, pipeline.source.identifier) as store:
        deleted = store.delete(annotation_id)

    if not deleted:
        raise HTTPException(status_code=404, detail="Annotation not found")
    return {"status": "deleted", "id": annotation_id}
