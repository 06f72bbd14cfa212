"""Source image loading and target preparation.

Turns a photo into the read-only target raster the selection engine
approximates:

  1. decode as grayscale,
  2. optionally crop to a rectangle given in percent of the image,
  3. resize to the working resolution with "cover" semantics (scale until
     both sides are filled, then centre-crop the overflow),
  4. convert to float64 on the 0 (black) .. 255 (white) scale.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

import cv2
import numpy as np

from .config import CropRect
from .errors import UpstreamDecodeError

logger = logging.getLogger(__name__)


def load_grayscale(image_path: Path) -> np.ndarray:
    """Decode *image_path* into a single-channel uint8 array.

    Raises:
        FileNotFoundError: If the file does not exist.
        UpstreamDecodeError: If OpenCV cannot decode the file.
    """
    if not image_path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")
    gray = cv2.imread(str(image_path), cv2.IMREAD_GRAYSCALE)
    if gray is None:
        raise UpstreamDecodeError(f"Could not decode image: {image_path}")
    return gray


def to_gray(image: np.ndarray) -> np.ndarray:
    """Return *image* as single-channel uint8, converting BGR/BGRA if needed."""
    if image.ndim == 3:
        code = cv2.COLOR_BGRA2GRAY if image.shape[2] == 4 else cv2.COLOR_BGR2GRAY
        image = cv2.cvtColor(image, code)
    if image.dtype != np.uint8:
        image = np.clip(image, 0, 255).astype(np.uint8)
    return image


def crop_percent(image: np.ndarray, crop: CropRect | None) -> np.ndarray:
    """Crop *image* to a rectangle given in percent of its size.

    The rectangle is clamped to the image; a crop that rounds to zero
    pixels leaves the image untouched.
    """
    if crop is None:
        return image
    h, w = image.shape[:2]
    left = math.floor(crop.x / 100 * w + 0.5)
    top = math.floor(crop.y / 100 * h + 0.5)
    cw = min(math.floor(crop.width / 100 * w + 0.5), w - left)
    ch = min(math.floor(crop.height / 100 * h + 0.5), h - top)
    if cw <= 0 or ch <= 0:
        logger.warning("Crop %s is empty for a %dx%d image; ignoring", crop, w, h)
        return image
    logger.debug("Cropped to %dx%d at (%d, %d)", cw, ch, left, top)
    return image[top : top + ch, left : left + cw]


def resize_cover(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """Scale *image* to fill ``width × height`` and centre-crop the overflow."""
    h, w = image.shape[:2]
    scale = max(width / w, height / h)
    new_w = max(width, math.ceil(w * scale))
    new_h = max(height, math.ceil(h * scale))
    interpolation = cv2.INTER_AREA if scale < 1 else cv2.INTER_LINEAR
    resized = cv2.resize(image, (new_w, new_h), interpolation=interpolation)
    x0 = (new_w - width) // 2
    y0 = (new_h - height) // 2
    return resized[y0 : y0 + height, x0 : x0 + width]


def prepare_target(
    image: np.ndarray,
    width: int,
    height: int,
    crop: CropRect | None = None,
) -> np.ndarray:
    """Build the float64 target raster from a decoded image.

    Args:
        image: Grayscale, BGR or BGRA image.
        width: Working raster width in pixels.
        height: Working raster height in pixels.
        crop: Optional crop applied before resizing.

    Returns:
        ``(height, width)`` float64 array, 0 = black, 255 = white.
    """
    gray = to_gray(image)
    if gray.size == 0:
        raise UpstreamDecodeError("Source image is empty")
    gray = crop_percent(gray, crop)
    gray = resize_cover(gray, width, height)
    return gray.astype(np.float64)
