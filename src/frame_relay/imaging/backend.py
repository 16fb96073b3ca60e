"""
Capability Backends
===================

Platform raster primitives used by the ImageEncoder.

This module provides the CapabilityBackend protocol and two implementations:
    - OpenCVBackend: numpy/OpenCV, BGR uint8 arrays (default)
    - PillowBackend: Pillow, for hosts that produce PIL images

A backend is resolved ONCE when the client is constructed; the encoder never
probes for capabilities per call.

Design Rules:
    - create_canvas returns None when no surface can be made
    - draw raises EncodingError when the pixels cannot be drawn
    - encode_jpeg raises EncodingError, never returns an empty payload
    - decode returns None on corrupt input
"""

import io
import logging
from typing import Any, Optional, Protocol

import cv2
import numpy as np
from PIL import Image


logger = logging.getLogger(__name__)


class EncodingError(Exception):
    """Raised when a backend fails to encode a canvas."""
    pass


class CapabilityBackend(Protocol):
    """
    Protocol for raster backends.

    All implementations must provide canvas creation, drawing with scaling,
    JPEG encoding with an optional quality and binary image decoding.
    """

    name: str

    def create_canvas(self, width: int, height: int) -> Optional[Any]:
        """Create a blank canvas of the given size, or None."""
        ...

    def draw(self, pixels: Any, canvas: Any) -> None:
        """Draw pixels onto canvas, scaling to fill it. Raises EncodingError."""
        ...

    def encode_jpeg(self, canvas: Any, quality: Optional[float] = None) -> bytes:
        """
        Encode canvas as JPEG.

        Args:
            canvas: Canvas returned by create_canvas
            quality: Quality in [0, 1], or None for the backend default

        Raises:
            EncodingError: If encoding fails
        """
        ...

    def decode(self, data: bytes) -> Optional[Any]:
        """Decode an encoded image into drawable pixels, or None."""
        ...


class OpenCVBackend:
    """
    OpenCV backend operating on BGR uint8 numpy arrays.

    Grayscale and BGRA inputs are converted to BGR before drawing.
    """

    name = "opencv"

    def create_canvas(self, width: int, height: int) -> Optional[np.ndarray]:
        if width < 1 or height < 1:
            return None
        return np.zeros((height, width, 3), dtype=np.uint8)

    def draw(self, pixels: Any, canvas: np.ndarray) -> None:
        height, width = canvas.shape[:2]
        try:
            image = self._as_bgr(pixels)
            canvas[...] = cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)
        except (cv2.error, ValueError, TypeError) as e:
            raise EncodingError(f"Cannot draw pixels onto {width}x{height} canvas: {e}") from e

    def encode_jpeg(self, canvas: np.ndarray, quality: Optional[float] = None) -> bytes:
        params = []
        if quality is not None:
            params = [cv2.IMWRITE_JPEG_QUALITY, int(round(quality * 100))]
        try:
            ok, buffer = cv2.imencode(".jpg", canvas, params)
        except cv2.error as e:
            raise EncodingError(f"cv2.imencode failed: {e}") from e
        if not ok or buffer is None or buffer.size == 0:
            raise EncodingError("cv2.imencode returned no data")
        return buffer.tobytes()

    def decode(self, data: bytes) -> Optional[np.ndarray]:
        if not data:
            return None
        try:
            return cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)
        except cv2.error as e:
            logger.debug(f"cv2.imdecode failed: {e}")
            return None

    @staticmethod
    def _as_bgr(pixels: Any) -> np.ndarray:
        image = np.asarray(pixels)
        if image.dtype != np.uint8:
            image = np.clip(image, 0, 255).astype(np.uint8)
        if image.ndim == 3 and image.shape[2] == 1:
            image = image[:, :, 0]
        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported pixel array shape {image.shape}")
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        return image


class PillowBackend:
    """
    Pillow backend operating on RGB PIL images.

    numpy arrays are accepted as RGB(A) or grayscale.
    """

    name = "pillow"

    def create_canvas(self, width: int, height: int) -> Optional[Image.Image]:
        if width < 1 or height < 1:
            return None
        return Image.new("RGB", (width, height))

    def draw(self, pixels: Any, canvas: Image.Image) -> None:
        try:
            image = pixels if isinstance(pixels, Image.Image) else self._as_image(pixels)
            resized = image.convert("RGB").resize(canvas.size, Image.BILINEAR)
            canvas.paste(resized, (0, 0))
        except (OSError, ValueError, TypeError) as e:
            raise EncodingError(f"Cannot draw pixels onto {canvas.size} canvas: {e}") from e

    def encode_jpeg(self, canvas: Image.Image, quality: Optional[float] = None) -> bytes:
        buffer = io.BytesIO()
        options = {}
        if quality is not None:
            options["quality"] = int(round(quality * 100))
        try:
            canvas.save(buffer, format="JPEG", **options)
        except (OSError, ValueError) as e:
            raise EncodingError(f"Pillow JPEG encode failed: {e}") from e
        data = buffer.getvalue()
        if not data:
            raise EncodingError("Pillow JPEG encode produced no data")
        return data

    def decode(self, data: bytes) -> Optional[Image.Image]:
        if not data:
            return None
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            return image
        except OSError as e:
            logger.debug(f"Pillow decode failed: {e}")
            return None

    @staticmethod
    def _as_image(pixels: Any) -> Image.Image:
        array = np.asarray(pixels)
        if array.dtype != np.uint8:
            array = np.clip(array, 0, 255).astype(np.uint8)
        if array.ndim == 3 and array.shape[2] == 1:
            array = array[:, :, 0]
        return Image.fromarray(array)


_BACKENDS = {
    OpenCVBackend.name: OpenCVBackend,
    PillowBackend.name: PillowBackend,
}


def resolve_backend(name: str = "opencv") -> CapabilityBackend:
    """
    Instantiate the backend registered under ``name``.

    Raises:
        ValueError: If the name is not a known backend
    """
    try:
        backend_cls = _BACKENDS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown imaging backend {name!r}, expected one of {sorted(_BACKENDS)}"
        ) from None
    logger.info(f"Using imaging backend: {backend_cls.name}")
    return backend_cls()
