"""
Capability Backend Tests
========================

Real OpenCV and Pillow encoding.
"""

import numpy as np
import pytest
from PIL import Image

from frame_relay.imaging.backend import (
    OpenCVBackend,
    PillowBackend,
    resolve_backend,
)
from frame_relay.imaging.encoder import ImageEncoder
from frame_relay.imaging.source import RasterSource, resolve_dimensions


JPEG_MAGIC = b"\xff\xd8"


@pytest.fixture
def noise_bgr():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(120, 200, 3), dtype=np.uint8)


class TestResolveDimensions:
    """Tests for the single dimension probe."""

    def test_numpy_shape(self, noise_bgr):
        assert resolve_dimensions(noise_bgr) == (200, 120)

    def test_pil_image(self):
        assert resolve_dimensions(Image.new("RGB", (64, 32))) == (64, 32)

    def test_video_dimensions(self):
        class VideoFrame:
            video_width = 640
            video_height = 480

        assert resolve_dimensions(VideoFrame()) == (640, 480)

    def test_zero_size_is_none(self):
        assert resolve_dimensions(np.zeros((0, 10, 3), dtype=np.uint8)) is None


class TestOpenCVBackend:
    """Tests for the OpenCV backend."""

    def test_encode_produces_jpeg(self, noise_bgr):
        encoder = ImageEncoder(OpenCVBackend())

        payload = encoder.encode(RasterSource(noise_bgr), 1.0, 0.92)

        assert payload[:2] == JPEG_MAGIC

    def test_scale_changes_dimensions(self, noise_bgr):
        backend = OpenCVBackend()
        payload = ImageEncoder(backend).encode(RasterSource(noise_bgr), 0.5, 0.8)

        assert backend.decode(payload).shape == (60, 100, 3)

    def test_lower_quality_is_smaller(self, noise_bgr):
        encoder = ImageEncoder(OpenCVBackend())
        source = RasterSource(noise_bgr)

        assert len(encoder.encode(source, 1.0, 0.3)) < len(encoder.encode(source, 1.0, 0.92))

    def test_grayscale_and_bgra_inputs(self):
        encoder = ImageEncoder(OpenCVBackend())
        gray = np.full((40, 40), 128, dtype=np.uint8)
        bgra = np.full((40, 40, 4), 200, dtype=np.uint8)

        assert encoder.encode(RasterSource(gray), 1.0, 0.9)[:2] == JPEG_MAGIC
        assert encoder.encode(RasterSource(bgra), 1.0, 0.9)[:2] == JPEG_MAGIC

    def test_single_channel_input(self):
        encoder = ImageEncoder(OpenCVBackend())
        mono = np.full((40, 50, 1), 128, dtype=np.uint8)

        payload = encoder.encode(RasterSource(mono), 1.0, 0.9)

        assert payload[:2] == JPEG_MAGIC
        assert OpenCVBackend().decode(payload).shape == (40, 50, 3)

    def test_float_input(self):
        pixels = np.full((40, 50, 3), 300.0)

        assert ImageEncoder(OpenCVBackend()).encode(RasterSource(pixels), 1.0, 0.9)[:2] == JPEG_MAGIC

    def test_undrawable_shape_is_none(self):
        pixels = np.zeros((40, 50, 2), dtype=np.uint8)

        assert ImageEncoder(OpenCVBackend()).encode(RasterSource(pixels), 1.0, 0.9) is None

    def test_decode_garbage_is_none(self):
        assert OpenCVBackend().decode(b"not an image") is None
        assert OpenCVBackend().decode(b"") is None

    def test_budget_met_when_reachable(self, noise_bgr):
        encoder = ImageEncoder(OpenCVBackend())
        source = RasterSource(noise_bgr)
        budget = len(encoder.encode(source, 0.5, 0.3))

        payload = encoder.compress_to_budget(source, budget)

        assert len(payload) <= budget


class TestPillowBackend:
    """Tests for the Pillow backend."""

    def test_encode_pil_image(self):
        image = Image.fromarray(
            np.random.default_rng(7).integers(0, 256, size=(50, 80, 3), dtype=np.uint8)
        )
        backend = PillowBackend()

        payload = ImageEncoder(backend).encode(RasterSource(image), 0.5, 0.8)

        assert payload[:2] == JPEG_MAGIC
        assert backend.decode(payload).size == (40, 25)

    def test_encode_numpy_array(self, noise_bgr):
        payload = ImageEncoder(PillowBackend()).encode(RasterSource(noise_bgr), 1.0, 0.9)

        assert payload[:2] == JPEG_MAGIC

    def test_float_and_single_channel_inputs(self):
        encoder = ImageEncoder(PillowBackend())
        floats = np.random.default_rng(3).random((40, 50, 3)) * 255.0
        mono = np.full((40, 50, 1), 90, dtype=np.uint8)

        assert encoder.encode(RasterSource(floats), 1.0, 0.9)[:2] == JPEG_MAGIC
        assert encoder.encode(RasterSource(mono), 1.0, 0.9)[:2] == JPEG_MAGIC

    def test_undrawable_pixels_is_none(self):
        pixels = np.zeros((40, 50, 7), dtype=np.uint8)

        assert ImageEncoder(PillowBackend()).encode(RasterSource(pixels), 1.0, 0.9) is None

    def test_source_from_encoded_bytes(self, noise_bgr):
        backend = PillowBackend()
        jpeg = ImageEncoder(OpenCVBackend()).encode(RasterSource(noise_bgr), 1.0, 0.9)

        source = RasterSource.from_encoded(jpeg, backend)

        assert source.size == (200, 120)

    def test_decode_garbage_is_none(self):
        assert PillowBackend().decode(b"not an image") is None


class TestResolveBackend:
    """Tests for backend selection."""

    def test_known_names(self):
        assert isinstance(resolve_backend("opencv"), OpenCVBackend)
        assert isinstance(resolve_backend("Pillow"), PillowBackend)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            resolve_backend("webgl")
