"""
Filesystem API routes for choosing an export destination
"""

import os
from pathlib import Path
from fastapi import APIRouter, Query

from boxdrop.export import ExportValidator, check_file

router = APIRouter()

_validator = ExportValidator()


@router.get("/check")
async def check_destination(
    path: str = Query(..., description="Candidate export file path"),
):
    """
    Check an export destination without writing to it.

    Runs the same writability probe and extension check as the export step.
    """
    if path.startswith("~"):
        path = os.path.expanduser(path)

    writable = bool(path.strip()) and check_file(path, "w")
    extension = Path(path).suffix
    return {
        "path": path,
        "writable": writable,
        "extension": extension.lstrip(".").lower(),
        "extension_allowed": _validator.is_allowed(extension),
    }


@router.get("/extensions")
async def list_extensions():
    """File types a region can be exported as."""
    return {"extensions": list(_validator.allowed_extensions)}
