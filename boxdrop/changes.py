"""
Change detection between pipeline invocations.
"""

from dataclasses import dataclass, fields
from typing import Optional

from boxdrop.models import PipelineParameters


@dataclass(frozen=True)
class ChangeFlags:
    """Changed-since-last-read state of the tracked inputs."""
    description: bool = False
    region: bool = False
    export_requested: bool = False
    output_path: bool = False

    @classmethod
    def everything(cls) -> 'ChangeFlags':
        return cls(True, True, True, True)

    def any(self) -> bool:
        return any(getattr(self, f.name) for f in fields(self))


def detect_changes(flags: ChangeFlags, has_export_handle: bool) -> bool:
    """
    Decide whether the ROI must be recomputed and exported.

    Args:
        flags: Which inputs changed since the previous invocation
        has_export_handle: Whether a cached export handle exists

    Returns:
        True if anything changed or there is no export handle yet
    """
    return flags.any() or not has_export_handle


class ParameterTracker:
    """
    Derives ChangeFlags by comparing against the previous invocation.

    Used when the host does not report its own change flags. The ROI size is
    not tracked.
    """

    def __init__(self):
        self._last: Optional[PipelineParameters] = None

    def flags_for(self, params: PipelineParameters) -> ChangeFlags:
        """Flags for ``params`` relative to the last committed snapshot."""
        last = self._last
        if last is None:
            return ChangeFlags.everything()
        return ChangeFlags(
            description=params.description != last.description,
            region=_region_key(params.region) != _region_key(last.region),
            export_requested=params.export_requested != last.export_requested,
            output_path=params.output_path != last.output_path,
        )

    def commit(self, params: PipelineParameters) -> None:
        """Remember ``params`` as the values at the end of an invocation."""
        self._last = PipelineParameters(
            size=params.size,
            description=params.description,
            region=None if params.region is None else [tuple(p) for p in params.region],
            export_requested=params.export_requested,
            output_path=params.output_path,
        )

    def reset(self) -> None:
        self._last = None


def _region_key(region) -> Optional[tuple]:
    if region is None:
        return None
    return tuple((float(x), float(y)) for x, y in region)
