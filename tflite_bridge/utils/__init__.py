"""
Shared utilities for the detection bridge.

- assets: bundled asset lookup and copy to local storage
- image_processing: image decoding, validation and RGB24 packing
"""

from .assets import ensure_local_asset, list_assets
from .image_processing import decode_image, load_rgb24, to_rgb24, validate_image


__all__ = [
    'decode_image',
    'ensure_local_asset',
    'list_assets',
    'load_rgb24',
    'to_rgb24',
    'validate_image',
]
