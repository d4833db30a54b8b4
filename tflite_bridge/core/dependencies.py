"""
Construction of owned resources.

The host application builds the backend and service once and passes them
where they are needed; nothing here is a module-level singleton.
"""

import logging

from tflite_bridge.clients.base import DetectorBackend
from tflite_bridge.clients.native_lib import NativeLibClient
from tflite_bridge.config.settings import Settings, get_settings
from tflite_bridge.core.exceptions import NativeLibraryError
from tflite_bridge.services.detection import DetectionService


logger = logging.getLogger(__name__)


def create_detector_backend(settings: Settings | None = None) -> DetectorBackend | None:
    """
    Load the native library named in settings.

    Returns:
        Bound NativeLibClient, or None when no library is configured or it
        fails to load (detection then answers with warning envelopes)
    """
    settings = settings or get_settings()
    if not settings.native_library_path:
        logger.warning('NATIVE_LIBRARY_PATH is not set; running without a native detector')
        return None

    logger.info(f'Loading native detection library ({settings.native_library_path})...')
    try:
        return NativeLibClient.load(settings.native_library_path)
    except NativeLibraryError as e:
        logger.error(e.message)
        logger.error('Make sure the library is built for this platform and exports the nd_* table')
        return None


def create_detection_service(settings: Settings | None = None) -> DetectionService:
    """Build an unopened DetectionService over the configured backend."""
    settings = settings or get_settings()
    return DetectionService(create_detector_backend(settings), settings)
