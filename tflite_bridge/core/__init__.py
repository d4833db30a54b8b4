"""
Core module with shared exceptions and resource construction.

Import factories from tflite_bridge.core.dependencies directly; they depend on
the service layer, which itself imports the exceptions defined here.
"""

from tflite_bridge.core.exceptions import (
    AssetNotFoundError,
    DetectorError,
    InvalidImageError,
    NativeLibraryError,
)


__all__ = [
    'AssetNotFoundError',
    'DetectorError',
    'InvalidImageError',
    'NativeLibraryError',
]
