"""
Frame Sources
=============

Tagged union of what a host may hand to ``send_image``.

    - RawFrameSource: an already-encoded payload, sent as-is
    - RasterSource: a drawable surface with discoverable dimensions

A RasterSource may be created *pending* (no pixels yet) and loaded later;
the client defers sending until the load happens.

Design Rules:
    - Dimension probing lives in ONE function: resolve_dimensions
    - Sources do NOT encode themselves; the ImageEncoder does
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple, Union

if TYPE_CHECKING:
    from frame_relay.imaging.backend import CapabilityBackend


logger = logging.getLogger(__name__)


def resolve_dimensions(pixels: Any) -> Optional[Tuple[int, int]]:
    """
    Discover (width, height) of a drawable object.

    Checks, in order:
        1. ``width`` / ``height`` attributes (PIL images, surfaces)
        2. ``video_width`` / ``video_height`` attributes (video frames)
        3. array ``shape`` as (height, width, ...) (numpy arrays)

    Args:
        pixels: Any drawable object

    Returns:
        (width, height), or None if no positive size can be found
    """
    if pixels is None:
        return None

    width = height = 0
    if _is_number(getattr(pixels, "width", None)) and _is_number(getattr(pixels, "height", None)):
        width, height = pixels.width, pixels.height
    elif _is_number(getattr(pixels, "video_width", None)) and _is_number(getattr(pixels, "video_height", None)):
        width, height = pixels.video_width, pixels.video_height
    else:
        shape = getattr(pixels, "shape", None)
        if shape is not None and len(shape) >= 2:
            height, width = shape[0], shape[1]

    if not width or not height:
        return None
    return int(width), int(height)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class RawFrameSource:
    """Already-encoded frame bytes; bypasses encoding and throttling."""

    payload: bytes

    def __repr__(self) -> str:
        return f"RawFrameSource({len(self.payload)} bytes)"


class RasterSource:
    """
    Drawable surface handed in by the host.

    Attributes:
        pixels: Backend-drawable object (numpy array, PIL image, ...)
        complete: False while the source is pending
    """

    def __init__(self, pixels: Any = None) -> None:
        self._pixels = pixels
        self._on_load: Optional[Callable[["RasterSource"], None]] = None

    @classmethod
    def pending(cls) -> "RasterSource":
        """Create a source whose pixels arrive later via load()."""
        return cls(None)

    @classmethod
    def from_encoded(cls, data: bytes, backend: "CapabilityBackend") -> "RasterSource":
        """
        Decode an encoded image (JPEG, PNG, ...) into a raster source.

        Lets hosts re-budget images they already hold in compressed form.
        An undecodable payload yields a source with no dimensions, which
        the encoder rejects.
        """
        return cls(backend.decode(data))

    @property
    def pixels(self) -> Any:
        return self._pixels

    @property
    def complete(self) -> bool:
        return self._pixels is not None

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        """(width, height) of the surface, or None."""
        return resolve_dimensions(self._pixels)

    def set_load_callback(self, callback: Optional[Callable[["RasterSource"], None]]) -> None:
        """Install the single load callback, replacing any previous one."""
        self._on_load = callback

    def load(self, pixels: Any) -> None:
        """Provide the pixels and fire the load callback, if any."""
        self._pixels = pixels
        callback, self._on_load = self._on_load, None
        if callback is not None:
            callback(self)

    def __repr__(self) -> str:
        size = self.size
        if size is None:
            return "RasterSource(pending)" if not self.complete else "RasterSource(unsized)"
        return f"RasterSource({size[0]}x{size[1]})"


FrameSource = Union[RawFrameSource, RasterSource]


def as_frame_source(value: Any) -> Optional[FrameSource]:
    """
    Coerce a host value into a FrameSource.

    bytes-like values become RawFrameSource; existing sources pass through;
    anything else is wrapped as a RasterSource.
    """
    if value is None:
        return None
    if isinstance(value, (RawFrameSource, RasterSource)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawFrameSource(bytes(value))
    return RasterSource(value)
