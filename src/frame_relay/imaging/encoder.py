"""
Image Encoder
=============

JPEG encoding of raster sources under a byte budget.

The budget search walks a fixed (scale, quality) grid, scale-major:

    scale    1.0 -> 0.9 -> ... -> 0.5
    quality  0.92 -> 0.85 -> ... -> 0.30   (per scale)

and returns the first candidate at or under the budget. Full resolution at
reduced quality is therefore always preferred over reduced resolution. If no
candidate fits, the smallest candidate seen anywhere in the grid is returned,
even though it exceeds the budget; the caller decides whether to drop it.

Design Rules:
    - Never raises: every failure maps to None
    - Search order is fixed; do NOT reorder for size
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from frame_relay.imaging.backend import CapabilityBackend, EncodingError
from frame_relay.imaging.source import RasterSource


logger = logging.getLogger(__name__)


DEFAULT_SCALE_CANDIDATES = (1.0, 0.9, 0.8, 0.7, 0.6, 0.5)
DEFAULT_QUALITY_CANDIDATES = (
    0.92, 0.85, 0.78, 0.72, 0.66, 0.6,
    0.55, 0.5, 0.45, 0.4, 0.35, 0.3,
)


@dataclass(frozen=True)
class CompressionCandidate:
    """One (scale, quality) attempt and its payload."""

    scale: float
    quality: float
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)

    def __repr__(self) -> str:
        return (
            f"CompressionCandidate(scale={self.scale}, "
            f"quality={self.quality}, size={self.size})"
        )


class ImageEncoder:
    """
    Encodes raster sources to JPEG through a capability backend.

    Attributes:
        backend: Capability backend used for all raster work
        scale_candidates: Scales tried by compress_to_budget, in order
        quality_candidates: Qualities tried per scale, in order
    """

    def __init__(
        self,
        backend: CapabilityBackend,
        scale_candidates: Sequence[float] = DEFAULT_SCALE_CANDIDATES,
        quality_candidates: Sequence[float] = DEFAULT_QUALITY_CANDIDATES,
    ) -> None:
        self.backend = backend
        self.scale_candidates = tuple(scale_candidates)
        self.quality_candidates = tuple(quality_candidates)

    def encode(self, source: RasterSource, scale: float, quality: float) -> Optional[bytes]:
        """
        Encode a source at the given scale and JPEG quality.

        Target size is floor(width * scale) x floor(height * scale), each
        at least 1 pixel. Quality is clamped to [0, 1]. If encoding at the
        requested quality fails, the backend default quality is tried once.

        Args:
            source: Raster source to encode
            scale: Scale factor in (0, 1]
            quality: JPEG quality in [0, 1]

        Returns:
            Encoded JPEG bytes, or None on failure
        """
        size = source.size
        if size is None:
            logger.debug(f"Cannot encode {source!r}: no dimensions")
            return None

        width = max(1, math.floor(size[0] * scale))
        height = max(1, math.floor(size[1] * scale))
        try:
            canvas = self.backend.create_canvas(width, height)
            if canvas is None:
                logger.debug(f"Cannot encode {source!r}: no {width}x{height} canvas")
                return None
            self.backend.draw(source.pixels, canvas)
        except EncodingError as e:
            logger.warning(f"Cannot draw {source!r} at {width}x{height}: {e}")
            return None

        quality = min(1.0, max(0.0, quality))
        try:
            return self.backend.encode_jpeg(canvas, quality)
        except EncodingError as e:
            logger.debug(f"Encode at quality {quality} failed ({e}), retrying with default")

        try:
            return self.backend.encode_jpeg(canvas)
        except EncodingError as e:
            logger.warning(f"Encode failed for {source!r} at {width}x{height}: {e}")
            return None

    def candidates(self, source: RasterSource) -> Iterator[CompressionCandidate]:
        """Yield every successfully encoded candidate in search order."""
        for scale in self.scale_candidates:
            for quality in self.quality_candidates:
                payload = self.encode(source, scale, quality)
                if payload:
                    yield CompressionCandidate(scale, quality, payload)

    def compress_to_budget(self, source: RasterSource, max_bytes: int) -> Optional[bytes]:
        """
        Search the (scale, quality) grid for a payload within max_bytes.

        Args:
            source: Raster source to encode
            max_bytes: Byte budget

        Returns:
            The first candidate <= max_bytes; otherwise the smallest
            candidate seen (may exceed max_bytes); None if nothing encoded.
        """
        best: Optional[CompressionCandidate] = None
        attempts = 0

        for candidate in self.candidates(source):
            attempts += 1
            if best is None or candidate.size < best.size:
                best = candidate
            if candidate.size <= max_bytes:
                logger.debug(f"Budget met after {attempts} attempts: {candidate!r}")
                return candidate.payload

        if best is None:
            logger.debug(f"No candidate encoded for {source!r}")
            return None

        logger.debug(
            f"Budget {max_bytes} not met after {attempts} attempts, "
            f"smallest was {best!r}"
        )
        return best.payload
