"""
Image decoding and validation for the detection bridge.

Turns encoded image files (JPEG, PNG, ...) into the packed RGB24 buffer the
native detector expects. Resizing, normalization and tensor layout are the
native library's job.
"""

import io
import logging

import cv2
import numpy as np
from PIL import Image

from tflite_bridge.core.exceptions import InvalidImageError


logger = logging.getLogger(__name__)

RGB_CHANNELS = 3


def decode_image(image_bytes: bytes, filename: str = 'unknown') -> np.ndarray:
    """
    Decode an encoded image to an RGB array.

    Fast path is cv2.imdecode; PIL handles formats OpenCV rejects (WebP
    variants, palette GIFs, CMYK JPEGs).

    Args:
        image_bytes: Encoded image file contents
        filename: Name used in error messages

    Returns:
        uint8 array of shape (H, W, 3), RGB order

    Raises:
        InvalidImageError: If neither decoder can read the data
    """
    if not image_bytes:
        raise InvalidImageError(filename, 'empty image data')

    try:
        nparr = np.frombuffer(image_bytes, dtype=np.uint8)
        img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if img is not None:
            return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    except cv2.error as e:
        logger.debug(f'OpenCV decode failed for {filename}: {e}')

    try:
        pil_image = Image.open(io.BytesIO(image_bytes))
        if pil_image.mode != 'RGB':
            pil_image = pil_image.convert('RGB')
        img = np.array(pil_image)
    except Exception as e:
        raise InvalidImageError(filename, f'unsupported or corrupt image data ({e!s})') from e

    logger.info(f'Decoded {filename} using PIL fallback (format: {pil_image.format})')
    return img


def validate_image(
    img: np.ndarray, filename: str = 'unknown', max_dimension: int = 16384, min_dimension: int = 1
) -> None:
    """
    Check decoded image bounds before handing it to the native library.

    Raises:
        InvalidImageError: If the array is empty, not RGB, or out of bounds
    """
    if img is None or not isinstance(img, np.ndarray) or img.size == 0:
        raise InvalidImageError(filename, 'decoded image is empty')

    if img.ndim != 3 or img.shape[2] != RGB_CHANNELS:
        raise InvalidImageError(filename, f'expected {RGB_CHANNELS} channels, got shape {img.shape}')

    height, width = img.shape[:2]
    if height > max_dimension or width > max_dimension:
        raise InvalidImageError(
            filename,
            f'dimensions too large: {width}x{height} (max {max_dimension}x{max_dimension})',
        )
    if height < min_dimension or width < min_dimension:
        raise InvalidImageError(filename, f'dimensions too small: {width}x{height}')


def to_rgb24(img: np.ndarray) -> tuple[bytes, int, int]:
    """
    Pack an RGB array row-major, three bytes per pixel.

    Returns:
        (buffer, width, height)
    """
    height, width = img.shape[:2]
    packed = np.ascontiguousarray(img, dtype=np.uint8)
    return packed.tobytes(), width, height


def load_rgb24(image_bytes: bytes, filename: str = 'unknown') -> tuple[bytes, int, int]:
    """Decode, validate and pack an encoded image in one step."""
    img = decode_image(image_bytes, filename)
    validate_image(img, filename)
    return to_rgb24(img)
