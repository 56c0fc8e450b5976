"""
Validated export of the ROI pixels to a flat image file.

Destination checks run in a fixed order and each one stops the export with
a user-facing message:

1. export not requested - skipped, not an error
2. blank filename
3. destination cannot be written to
4. file extension not one of the allowed types
"""

import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path

from PIL import Image

from boxdrop.models import PipelineParameters, RoiRect
from boxdrop.pixels import PixelSource

logger = logging.getLogger(__name__)

# Candidate output types, in the order they are listed to the user
ALLOWED_EXTENSIONS = ("tif", "png", "bmp", "gif", "jpg")

_WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH


class ExportError(Exception):
    """Base class for export failures. ``str(exc)`` is the user-facing message."""


class BlankDestination(ExportError):
    def __init__(self):
        super().__init__("The filename is blank. Please choose a file to export the region to.")


class UnwritableDestination(ExportError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"The file {path} cannot be written to. "
            "Please check the permissions of the destination and try again."
        )


class InvalidExtension(ExportError):
    def __init__(self, path: str, extension: str, allowed: tuple[str, ...]):
        self.path = path
        self.extension = extension
        super().__init__(
            f"The extension '{extension}' of the file {path} is not a valid type. "
            f"The file extension must be: {join_choices(allowed)}."
        )


class ExportWriteFailure(ExportError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Saving the region to {path} failed: {reason}")


def join_choices(choices: tuple[str, ...]) -> str:
    """'a, b, or c' style enumeration."""
    if len(choices) <= 1:
        return "".join(choices)
    return ", ".join(choices[:-1]) + ", or " + choices[-1]


def normalize_extension(extension: str) -> str:
    """Lower-case the extension and strip any leading dot."""
    return extension.strip().lstrip(".").lower()


def check_file(path: str, mode: str = "w") -> bool:
    """
    Probe whether ``path`` can be read from or written to.

    Args:
        path: File path to probe
        mode: "r" to probe for reading, "w" for writing

    Returns:
        True if the file is usable in the requested mode
    """
    if mode not in ("r", "w"):
        raise ValueError(f"mode must be 'r' or 'w', got {mode!r}")

    target = Path(path).expanduser()

    if mode == "r":
        try:
            with open(target, "rb"):
                return True
        except OSError:
            return False

    if target.exists():
        # Append mode opens without truncating an existing file
        try:
            with open(target, "ab"):
                return True
        except OSError:
            return False

    parent = target.parent
    if not parent.is_dir():
        return False
    return bool(os.stat(parent).st_mode & _WRITE_BITS)


def _writable_formats() -> dict[str, str]:
    """Map of extension (no dot) to Pillow format name for every writable type."""
    formats = {}
    for ext, fmt in Image.registered_extensions().items():
        if fmt in Image.SAVE:
            formats[normalize_extension(ext)] = fmt
    return formats


def _save_replacing(image: Image.Image, destination: Path, fmt: str) -> None:
    """
    Encode ``image`` next to ``destination`` and move it into place.

    An existing destination is left untouched if encoding fails.
    """
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
    )
    os.close(fd)
    try:
        image.save(tmp_name, format=fmt)
        if destination.exists():
            shutil.copymode(destination, tmp_name)
        else:
            os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, destination)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class ExportValidator:
    """
    Checks an export destination before any pixels are read.

    The allowed extensions are fixed when the validator is built.
    """

    def __init__(self, extensions: tuple[str, ...] = ALLOWED_EXTENSIONS):
        writable = _writable_formats()
        self._formats = {}
        for ext in extensions:
            normalized = normalize_extension(ext)
            if normalized not in writable:
                logger.warning(f"Pillow cannot write '{ext}' files, leaving it out of the allowed extensions")
                continue
            self._formats[normalized] = writable[normalized]
        self.allowed_extensions: tuple[str, ...] = tuple(self._formats)

    def is_allowed(self, extension: str) -> bool:
        normalized = normalize_extension(extension)
        return bool(normalized) and normalized in self._formats

    def format_for(self, path: str) -> str:
        """Pillow format name for a validated destination."""
        return self._formats[normalize_extension(Path(path).suffix)]

    def validate(self, params: PipelineParameters) -> bool:
        """
        Validate the export destination in ``params``.

        Returns:
            False if no export was requested, True if the destination is valid

        Raises:
            BlankDestination, UnwritableDestination, InvalidExtension
        """
        if not params.export_requested:
            return False

        path = params.output_path.strip()
        if not path:
            raise BlankDestination()

        if not check_file(path, "w"):
            raise UnwritableDestination(path)

        extension = Path(path).suffix
        if not self.is_allowed(extension):
            raise InvalidExtension(path, normalize_extension(extension), self.allowed_extensions)

        return True


class RegionExporter:
    """
    Writes ROI pixels from one pixel source to disk.

    This is the cached export handle: the pipeline keeps one per pixel source
    and drops it when the user cancels a run.
    """

    def __init__(self, source: PixelSource, validator: ExportValidator):
        self.source = source
        self.validator = validator

    def export(self, roi: RoiRect, path: str) -> Path:
        """
        Extract ``roi`` at native resolution and save it to ``path``.

        The file format is taken from the (already validated) extension.

        Raises:
            ExportWriteFailure: If extraction or encoding fails
        """
        destination = Path(path.strip()).expanduser()
        fmt = self.validator.format_for(str(destination))

        try:
            pixels = self.source.extract(roi.box, (roi.size, roi.size))
            image = Image.fromarray(pixels)
            if fmt == "JPEG" and image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            _save_replacing(image, destination, fmt)
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to export region {roi.box} to {destination}: {e}")
            raise ExportWriteFailure(str(destination), str(e)) from e

        logger.info(f"Exported {roi.size}x{roi.size} region at ({roi.x}, {roi.y}) to {destination}")
        return destination

    def close(self) -> None:
        """Release the pixel source's open resources."""
        self.source.close()
