"""
Image Service — turns a photographed receipt into a pure black/white bitmap
that Tesseract reads reliably.

Pipeline: decode → cap width at 1400px → luminance → contrast stretch around
the midpoint → hard threshold → PNG.  Every call works on its own arrays, so
concurrent scans never share a buffer.
"""
import asyncio
import io
import logging

import numpy as np
from PIL import Image, ImageOps

from services.errors import PreprocessingUnsupported

logger = logging.getLogger("splitter.image")

# Register HEIC/HEIF support via pillow-heif if available
try:
    from pillow_heif import register_heif_opener
    register_heif_opener()
    HEIF_AVAILABLE = True
except ImportError:
    HEIF_AVAILABLE = False
    logger.info("pillow-heif not installed — HEIC files will not be supported")

MAX_WIDTH = 1400
CONTRAST = 1.35
THRESHOLD = 160
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def scaled_size(width: int, height: int) -> tuple[int, int]:
    """Downscale proportionally so width ≤ MAX_WIDTH.  Never upscales."""
    if width <= MAX_WIDTH:
        return width, height
    # integer floor of height * (MAX_WIDTH / width) without float drift
    return MAX_WIDTH, (height * MAX_WIDTH) // width


def _decode(image_bytes: bytes) -> "Image.Image":
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
        # Phone photos carry their rotation in EXIF rather than in the pixels
        image = ImageOps.exif_transpose(image)
        return image.convert("RGB")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise PreprocessingUnsupported(f"Cannot open image: {e}") from e


def _rasterize(image: "Image.Image") -> bytes:
    try:
        w, h = image.size
        new_w, new_h = scaled_size(w, h)
        if new_w < 1 or new_h < 1:
            raise PreprocessingUnsupported(f"Image too small to draw: {w}×{h}")
        if (new_w, new_h) != (w, h):
            image = image.resize((new_w, new_h), Image.LANCZOS)
            logger.debug("Resized image %d×%d → %d×%d", w, h, new_w, new_h)

        rgb = np.asarray(image, dtype=np.float64)
        r, g, b = LUMA_WEIGHTS
        gray = r * rgb[..., 0] + g * rgb[..., 1] + b * rgb[..., 2]
        gray = (gray - 128) * CONTRAST + 128
        value = np.where(gray > THRESHOLD, 255, 0).astype(np.uint8)
        out = Image.fromarray(np.stack([value, value, value], axis=-1))

        buf = io.BytesIO()
        out.save(buf, format="PNG")
        return buf.getvalue()
    except PreprocessingUnsupported:
        raise
    except (OSError, ValueError, MemoryError) as e:
        raise PreprocessingUnsupported(f"Cannot rasterize image: {e}") from e


async def preprocess_image(image_bytes: bytes) -> bytes:
    """
    Clean a receipt photo for OCR.  Returns PNG bytes where every channel of
    every pixel is exactly 0 or 255.

    Raises PreprocessingUnsupported when the bytes cannot be decoded or drawn;
    no partial image is ever returned.
    """
    if not image_bytes:
        raise PreprocessingUnsupported("Empty image")
    image = await asyncio.to_thread(_decode, image_bytes)
    return await asyncio.to_thread(_rasterize, image)
