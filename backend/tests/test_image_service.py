"""
Tests for receipt image preprocessing — scaling, binarization, failure modes.
"""
import asyncio
import io

import numpy as np
import pytest
from PIL import Image

from services.errors import PreprocessingUnsupported
from services.image_service import preprocess_image, scaled_size, MAX_WIDTH


def make_image_bytes(width, height, color=(200, 200, 200), fmt="PNG", mode="RGB"):
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def decode(png_bytes):
    return Image.open(io.BytesIO(png_bytes))


class TestScaledSize:
    def test_wide_image_capped(self):
        assert scaled_size(2000, 1000) == (1400, 700)

    def test_never_upscales(self):
        assert scaled_size(800, 1200) == (800, 1200)

    def test_exact_cap_untouched(self):
        assert scaled_size(MAX_WIDTH, 333) == (MAX_WIDTH, 333)

    def test_height_floored(self):
        # 999 * 1400 / 2001 = 698.95…
        assert scaled_size(2001, 999) == (1400, 698)


class TestPreprocessImage:
    async def test_scales_to_cap(self):
        out = decode(await preprocess_image(make_image_bytes(2000, 1000)))
        assert out.size == (1400, 700)

    async def test_every_channel_is_black_or_white(self):
        # Gradient so both sides of the threshold are exercised
        arr = np.zeros((60, 256, 3), dtype=np.uint8)
        arr[:, :, 0] = np.arange(256, dtype=np.uint8)
        arr[:, :, 1] = np.arange(256, dtype=np.uint8)[::-1]
        arr[:, :, 2] = 90
        buf = io.BytesIO()
        Image.fromarray(arr).save(buf, format="PNG")

        out = np.asarray(decode(await preprocess_image(buf.getvalue())).convert("RGB"))
        assert set(np.unique(out)) <= {0, 255}
        assert (out[..., 0] == out[..., 1]).all()
        assert (out[..., 1] == out[..., 2]).all()

    async def test_large_image_binary_after_resize(self):
        out = np.asarray(decode(await preprocess_image(make_image_bytes(2000, 1000, (120, 180, 60)))))
        assert out.shape == (700, 1400, 3)
        assert set(np.unique(out)) <= {0, 255}

    async def test_light_pixel_turns_white(self):
        # gray 200 → (200-128)*1.35+128 = 225.2 > 160
        out = np.asarray(decode(await preprocess_image(make_image_bytes(10, 10, (200, 200, 200)))))
        assert (out == 255).all()

    async def test_dark_pixel_turns_black(self):
        out = np.asarray(decode(await preprocess_image(make_image_bytes(10, 10, (40, 40, 40)))))
        assert (out == 0).all()

    async def test_threshold_boundary(self):
        # gray 152 → 160.4 (white); gray 151 → 159.05 (black)
        white = np.asarray(decode(await preprocess_image(make_image_bytes(4, 4, (152, 152, 152)))))
        black = np.asarray(decode(await preprocess_image(make_image_bytes(4, 4, (151, 151, 151)))))
        assert (white == 255).all()
        assert (black == 0).all()

    async def test_luminance_weights(self):
        # cyan: 0.701*255 = 178.8 → 197.9 (white)
        # magenta: 0.413*255 = 105.3 → 97.4 (black), although its plain channel mean is 170
        cyan = np.asarray(decode(await preprocess_image(make_image_bytes(4, 4, (0, 255, 255)))))
        magenta = np.asarray(decode(await preprocess_image(make_image_bytes(4, 4, (255, 0, 255)))))
        assert (cyan == 255).all()
        assert (magenta == 0).all()

    async def test_accepts_jpeg_and_grayscale(self):
        out = decode(await preprocess_image(make_image_bytes(50, 30, 220, fmt="JPEG", mode="L")))
        assert out.size == (50, 30)
        assert out.mode == "RGB"

    async def test_garbage_bytes_unsupported(self):
        with pytest.raises(PreprocessingUnsupported):
            await preprocess_image(b"definitely not an image")

    async def test_empty_bytes_unsupported(self):
        with pytest.raises(PreprocessingUnsupported):
            await preprocess_image(b"")

    async def test_concurrent_calls_do_not_share_buffers(self):
        light = make_image_bytes(20, 20, (230, 230, 230))
        dark = make_image_bytes(20, 20, (10, 10, 10))
        a, b = await asyncio.gather(preprocess_image(light), preprocess_image(dark))
        assert (np.asarray(decode(a)) == 255).all()
        assert (np.asarray(decode(b)) == 0).all()
