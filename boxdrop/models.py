"""
Core data models for BoxDrop.

Dataclasses representing annotation records, the ROI rectangle and the
per-invocation values passed between pipeline steps.
"""

from dataclasses import dataclass, field
from typing import Optional, Any
import json

Point = tuple[float, float]

# Defaults mirrored from the viewer plugin's parameter declarations
DEFAULT_ROI_SIZE = 512
MIN_ROI_SIZE = 1
DEFAULT_DESCRIPTION = "cellularity(%)"


@dataclass
class AnnotationRecord:
    """Represents a stored overlay annotation on an image."""
    name: str
    style: dict = field(default_factory=dict)  # Opaque, round-tripped as JSON
    geometry: str = "rectangle"
    points: list[list[Point]] = field(default_factory=list)
    description: str = ""
    id: Optional[int] = None

    @property
    def is_placeholder(self) -> bool:
        """Placeholders are stored by the viewer before they get a description."""
        return self.description == ""


@dataclass(frozen=True)
class RoiRect:
    """Square region of interest, anchored at its center with no rotation."""
    x: int
    y: int
    size: int
    rotation: float = 0.0
    anchor: str = "center"

    @property
    def box(self) -> tuple[int, int, int, int]:
        """(left, top, right, bottom) in pixels."""
        return (self.x, self.y, self.x + self.size, self.y + self.size)

    def corners(self) -> list[Point]:
        """Four corners, clockwise from the top-left."""
        left, top, right, bottom = self.box
        return [
            (float(left), float(top)),
            (float(right), float(top)),
            (float(right), float(bottom)),
            (float(left), float(bottom)),
        ]


@dataclass
class PipelineParameters:
    """Current values of the host-bound inputs for one invocation."""
    size: int = DEFAULT_ROI_SIZE
    description: str = DEFAULT_DESCRIPTION
    region: Optional[list[Point]] = None  # Input annotation drawn by the user
    export_requested: bool = False
    output_path: str = ""


@dataclass(frozen=True)
class ParameterBounds:
    """Allowed ROI sizes for an image."""
    default: int
    minimum: int
    maximum: int

    @classmethod
    def for_image(cls, width: int, height: int) -> 'ParameterBounds':
        """Bounds for an image: the ROI may not exceed the smaller dimension."""
        maximum = min(width, height)
        return cls(
            default=min(DEFAULT_ROI_SIZE, maximum),
            minimum=MIN_ROI_SIZE,
            maximum=maximum,
        )

    def check(self, size: int) -> None:
        """Raise ValueError if ``size`` is outside the bounds."""
        if not self.minimum <= size <= self.maximum:
            raise ValueError(
                f"ROI size {size} must be between {self.minimum} and {self.maximum}"
            )


@dataclass(frozen=True)
class OverlayRect:
    """What the host should draw for a newly placed ROI."""
    roi: RoiRect
    name: str
    style: dict
    description: str


@dataclass
class InvocationContext:
    """State shared between the steps of a single pipeline run."""
    roi: Optional[RoiRect] = None
    name: str = ""
    style: dict = field(default_factory=dict)
    overlay_count: int = 0
    status_lines: list[str] = field(default_factory=list)


@dataclass
class PipelineResult:
    """Outcome of one pipeline invocation."""
    changed: bool
    roi: Optional[RoiRect]
    overlay: Optional[OverlayRect]
    record_count: int
    report: str
    exported_path: Optional[str] = None
    export_error: Optional[str] = None


def points_to_json(points: list[list[Point]]) -> str:
    """Convert polygon point lists to JSON string."""
    return json.dumps([[list(p) for p in polygon] for polygon in points])


def points_from_json(text: str) -> list[list[Point]]:
    """Parse polygon point lists from JSON string."""
    return [[(float(x), float(y)) for x, y in polygon] for polygon in json.loads(text)]


def style_to_json(style: dict[str, Any]) -> str:
    """Convert style dict to JSON string."""
    return json.dumps(style, sort_keys=True)


def style_from_json(text: Optional[str]) -> dict[str, Any]:
    """Parse style JSON to dict."""
    if text:
        return json.loads(text)
    return {}
