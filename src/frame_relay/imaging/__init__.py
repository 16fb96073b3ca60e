"""
Imaging Module
==============

Frame sources, capability backends and budget-constrained JPEG encoding.

Components:
    - RasterSource / RawFrameSource: What the host hands to send_image
    - CapabilityBackend: Raster primitives (OpenCV or Pillow)
    - ImageEncoder: Scale/quality encoding and the compress-to-budget search
"""

from frame_relay.imaging.backend import (
    CapabilityBackend,
    EncodingError,
    OpenCVBackend,
    PillowBackend,
    resolve_backend,
)
from frame_relay.imaging.encoder import CompressionCandidate, ImageEncoder
from frame_relay.imaging.source import (
    FrameSource,
    RasterSource,
    RawFrameSource,
    as_frame_source,
    resolve_dimensions,
)

__all__ = [
    "CapabilityBackend",
    "EncodingError",
    "OpenCVBackend",
    "PillowBackend",
    "resolve_backend",
    "CompressionCandidate",
    "ImageEncoder",
    "FrameSource",
    "RasterSource",
    "RawFrameSource",
    "as_frame_source",
    "resolve_dimensions",
]
