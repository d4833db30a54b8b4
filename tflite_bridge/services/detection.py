"""
Detection service wrapping the external TensorFlow Lite detection library.

Reconciles the three native result APIs into one canonical envelope:

1. nd_detect_objects: count only, always available
2. nd_get_detailed_detections: JSON with per-object details (optional)
3. nd_get_detection_info per index: detection strings from the last run (optional)

detect() never raises and never returns an empty string. Native failures
degrade to an error envelope; missing detail degrades to a count-only success.
"""

import logging
from pathlib import Path

from tflite_bridge.clients.base import CallStatus, DetectorBackend, NativeResult
from tflite_bridge.clients.native_lib import EXPECTED_SIGNATURES, NATIVE_ABI_VERSION
from tflite_bridge.config import Settings, get_settings
from tflite_bridge.core.exceptions import InvalidImageError
from tflite_bridge.schemas.envelope import DetectionStatus
from tflite_bridge.services.interpreter import has_envelope_key
from tflite_bridge.services.response import (
    EMPTY_DETECTIONS,
    MSG_COUNT_ONLY,
    MSG_DETECTION_COMPLETED,
    MSG_FROM_FALLBACK,
    MSG_LIBRARY_UNAVAILABLE,
    MSG_NO_OBJECTS,
    MSG_NOT_INITIALIZED,
    build_response,
    join_detection_entries,
)
from tflite_bridge.utils.image_processing import RGB_CHANNELS, load_rgb24


logger = logging.getLogger(__name__)

# Backend method -> native symbol, for remediation hints
_NATIVE_SYMBOLS = {
    'initialize_detector': 'nd_initialize_detector',
    'detect_objects': 'nd_detect_objects',
    'get_detailed_detections': 'nd_get_detailed_detections',
    'get_last_detections': 'nd_get_detection_info',
    'get_last_detection_count': 'nd_get_last_detection_count',
    'get_detection_info': 'nd_get_detection_info',
    'get_image_info': 'nd_get_image_info',
    'get_input_dimensions': 'nd_get_input_dimensions',
    'is_initialized': 'nd_is_initialized',
    'cleanup': 'nd_cleanup',
    'string_from_native': 'nd_string_from_native',
}

SAMPLE_DETECTIONS = (
    '[{"class":"person","confidence":0.85},{"class":"car","confidence":0.92}]'
)


def describe_failure(method: str, result: NativeResult) -> str:
    """
    Log a failed native call with remediation hints and return a short message.

    METHOD_NOT_FOUND means the loaded library does not match the expected
    function table (configuration problem). NATIVE_FAULT is anything that
    went wrong inside a call that does exist.
    """
    symbol = _NATIVE_SYMBOLS.get(method, method)
    if result.status is CallStatus.METHOD_NOT_FOUND:
        logger.error(f'Native method not found: {symbol}')
        logger.error(f'Expected signature: {EXPECTED_SIGNATURES.get(symbol, symbol)}')
        logger.error(f'Check that the native library implements ABI v{NATIVE_ABI_VERSION}')
        return f'Native method not found: {symbol} (library does not match ABI v{NATIVE_ABI_VERSION})'

    logger.error(f'Native fault in {symbol}: {result.error}')
    return f'Native fault in {symbol}: {result.error}'


class DetectionService:
    """
    Owned wrapper around a detector backend.

    The host creates one instance, opens it, and closes it on shutdown:

        with DetectionService(NativeLibClient.load(path)) as service:
            service.initialize(model_path)
            envelope = service.detect(rgb_bytes, width, height)

    A service without a backend (no native library on this platform) still
    answers every call, with warning envelopes and failure sentinels.
    """

    def __init__(self, backend: DetectorBackend | None, settings: Settings | None = None):
        self.backend = backend
        self.settings = settings or get_settings()
        self._initialized = False

    # =========================================================================
    # Lifecycle
    # =========================================================================
    def open(self) -> 'DetectionService':
        if self.backend is None:
            logger.warning('Detection service opened without a native library; detection is disabled')
        else:
            logger.info(f'Detection service opened ({self.backend.library_path})')
        return self

    def close(self) -> None:
        self.cleanup()
        logger.info('Detection service closed')

    def __enter__(self) -> 'DetectionService':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def cleanup(self) -> None:
        """Release native resources. Best effort; failures are only logged."""
        if self.backend is None:
            return
        try:
            result = self.backend.cleanup()
            if result.ok:
                logger.info('Native resources cleaned up')
            else:
                describe_failure('cleanup', result)
        finally:
            self._initialized = False

    def handle_pause(self, paused: bool) -> None:
        """Host lifecycle hook: release native resources when the app is paused."""
        if paused:
            self.cleanup()

    def handle_focus_change(self, has_focus: bool) -> None:
        """Host lifecycle hook: release native resources when focus is lost."""
        if not has_focus:
            self.cleanup()

    # =========================================================================
    # Initialization
    # =========================================================================
    def initialize(self, model_path: str | Path) -> bool:
        """
        Load a model into the native detector.

        The native boolean is the only source of truth for success. A model
        without the expected extension is passed through with a warning.

        Args:
            model_path: Path to the .tflite model file

        Returns:
            True if the native detector reported success
        """
        if self.backend is None:
            logger.warning(f'Cannot initialize detector: {MSG_LIBRARY_UNAVAILABLE}')
            return False

        path = Path(model_path)
        logger.info(f'Initializing detector with model path: {path}')

        if not path.is_file():
            logger.error(f'Model file does not exist at path: {path}')
            return False

        logger.info(f'Model file size: {path.stat().st_size} bytes')
        if path.suffix.lower() != self.settings.model_extension.lower():
            logger.warning(
                f"Model file doesn't have {self.settings.model_extension} extension: {path}"
            )

        result = self.backend.initialize_detector(str(path))
        if not result.ok:
            describe_failure('initialize_detector', result)
            self._initialized = False
            return False

        self._initialized = bool(result.value)
        if self._initialized:
            logger.info('Detector initialization successful')
            logger.info(self.implementation_info())
        else:
            logger.error('Detector initialization failed - native method returned false')
            logger.error(
                'Possible causes: invalid model file, insufficient memory, '
                'model incompatible with the TensorFlow Lite runtime'
            )
        return self._initialized

    def is_initialized(self) -> bool:
        """
        Check the local flag against the native library's own state.

        A mismatch is logged, never raised; both sides must agree for True.
        """
        if self.backend is None:
            return False

        result = self.backend.is_initialized()
        if not result.ok:
            describe_failure('is_initialized', result)
            return False

        native_initialized = bool(result.value)
        if native_initialized != self._initialized:
            logger.warning(
                f'Initialization state mismatch - local: {self._initialized}, '
                f'native: {native_initialized}'
            )
        return self._initialized and native_initialized

    # =========================================================================
    # Detection
    # =========================================================================
    def _respond(
        self,
        total_detections: int,
        detections: str = EMPTY_DETECTIONS,
        status: DetectionStatus = DetectionStatus.SUCCESS,
        message: str = '',
    ) -> str:
        return build_response(
            total_detections,
            detections,
            status,
            message,
            log_envelope=self.settings.log_envelopes,
        )

    def detect(
        self,
        image_bytes: bytes,
        width: int,
        height: int,
        channels: int | None = None,
    ) -> str:
        """
        Run detection and return a canonical envelope.

        Args:
            image_bytes: Packed pixel buffer (RGB24 or RGBA32)
            width: Image width in pixels
            height: Image height in pixels
            channels: Channel count, for logging only

        Returns:
            JSON envelope with total_detections, detections, status, message
        """
        if self.backend is None:
            logger.warning(f'detect: {MSG_LIBRARY_UNAVAILABLE}')
            return self._respond(0, status=DetectionStatus.WARNING, message=MSG_LIBRARY_UNAVAILABLE)

        if not self._initialized:
            logger.error(MSG_NOT_INITIALIZED)
            return self._respond(0, status=DetectionStatus.ERROR, message=MSG_NOT_INITIALIZED)

        if not image_bytes or width <= 0 or height <= 0:
            message = f'Invalid image buffer: {len(image_bytes or b"")} bytes for {width}x{height}'
            logger.error(message)
            return self._respond(0, status=DetectionStatus.ERROR, message=message)

        logger.info(
            f'Running detection on {width}x{height} image '
            f'({len(image_bytes)} bytes, {channels or "?"} channels)'
        )

        primary = self.backend.detect_objects(image_bytes, width, height)
        if not primary.ok:
            message = describe_failure('detect_objects', primary)
            return self._respond(0, status=DetectionStatus.ERROR, message=message)

        count = primary.value
        if count is None or count < 0:
            message = f'Native detection failed with error code {count}'
            logger.error(message)
            return self._respond(0, status=DetectionStatus.ERROR, message=message)

        logger.info(f'Primary detection returned {count} objects')
        if count == 0:
            return self._respond(0, message=MSG_NO_OBJECTS)

        detailed = self.backend.get_detailed_detections(image_bytes, width, height)
        if detailed.ok:
            raw = detailed.value
            if raw and raw.strip():
                logger.debug(f'Detailed detection raw result: {raw}')
                if has_envelope_key(raw):
                    return raw
                logger.warning('Detailed result missing total_detections field, wrapping response')
                return self._respond(count, raw, message=MSG_DETECTION_COMPLETED)
            logger.warning('Detailed detections returned an empty result')
        else:
            logger.warning(
                f'Detailed detections not available ({detailed.status.value}): {detailed.error}'
            )
            fallback = self._detect_from_last_detections()
            if fallback is not None:
                return fallback

        return self._respond(count, message=MSG_COUNT_ONLY)

    def _detect_from_last_detections(self) -> str | None:
        """List-based fallback; None when it is unavailable or empty."""
        result = self.backend.get_last_detections()
        if not result.ok:
            logger.warning(f'Last detections fallback also failed ({result.status.value}): {result.error}')
            return None
        if not result.value:
            logger.warning('Last detections fallback returned no entries')
            return None

        entries = result.value
        logger.info(f'Using {len(entries)} detections from the last detections fallback')
        return self._respond(len(entries), join_detection_entries(entries), message=MSG_FROM_FALLBACK)

    def detect_image(self, image_bytes: bytes, filename: str = 'unknown') -> str:
        """
        Decode an encoded image (JPEG, PNG, ...) and run detection on it.

        Decode failures are reported as an error envelope.
        """
        try:
            buffer, width, height = load_rgb24(image_bytes, filename)
        except InvalidImageError as e:
            logger.error(e.message)
            return self._respond(0, status=DetectionStatus.ERROR, message=e.message)

        logger.info(f'Image loaded: {filename} ({width}x{height}, {len(buffer)} bytes RGB24)')
        return self.detect(buffer, width, height, channels=RGB_CHANNELS)

    def sample_response(self) -> str:
        """Fixed two-record envelope for checking response parsers."""
        return self._respond(2, SAMPLE_DETECTIONS, message='Test detection completed')

    # =========================================================================
    # Auxiliary queries
    # =========================================================================
    def _require_initialized(self, operation: str) -> bool:
        if self.backend is None:
            logger.warning(f'{operation}: {MSG_LIBRARY_UNAVAILABLE}')
            return False
        if not self._initialized:
            logger.error(f'{operation}: {MSG_NOT_INITIALIZED}')
            return False
        return True

    def get_input_dimensions(self) -> list[int] | None:
        """Model input as [width, height, channels], or None."""
        if not self._require_initialized('get_input_dimensions'):
            return None
        result = self.backend.get_input_dimensions()
        if not result.ok:
            describe_failure('get_input_dimensions', result)
            return None
        return result.value

    def get_image_info(self, image_bytes: bytes, width: int, height: int) -> list[int]:
        """[data_size, channels, is_valid] as seen by the native side; empty on failure."""
        if not self._require_initialized('get_image_info'):
            return []
        result = self.backend.get_image_info(image_bytes, width, height)
        if not result.ok:
            describe_failure('get_image_info', result)
            return []
        info = result.value or []
        if len(info) >= 3:
            logger.debug(f'Image info: size={info[0]}, channels={info[1]}, valid={info[2]}')
        return info

    def get_last_detections(self) -> list[str] | None:
        if not self._require_initialized('get_last_detections'):
            return None
        result = self.backend.get_last_detections()
        if not result.ok:
            describe_failure('get_last_detections', result)
            return None
        return result.value

    def get_last_detection_count(self) -> int:
        """Count from the last inference, -1 on error."""
        if not self._require_initialized('get_last_detection_count'):
            return -1
        result = self.backend.get_last_detection_count()
        if not result.ok:
            describe_failure('get_last_detection_count', result)
            return -1
        return result.value

    def get_detection_info(self, index: int) -> str | None:
        if not self._require_initialized('get_detection_info'):
            return None
        result = self.backend.get_detection_info(index)
        if not result.ok:
            describe_failure('get_detection_info', result)
            return None
        return result.value

    def test_connection(self) -> str | None:
        """Connectivity string from the native library, or None."""
        if self.backend is None:
            logger.warning(f'test_connection: {MSG_LIBRARY_UNAVAILABLE}')
            return None
        result = self.backend.string_from_native()
        if not result.ok:
            describe_failure('string_from_native', result)
            return None
        logger.info(f'Native connection test: {result.value}')
        return result.value

    def implementation_info(self) -> str:
        """One-line summary of the bound native implementation."""
        if self.backend is None:
            return MSG_LIBRARY_UNAVAILABLE

        initialized = self.backend.is_initialized()
        connection = self.backend.string_from_native()
        if not initialized.ok or not connection.ok:
            failed = initialized if not initialized.ok else connection
            return f'Unable to determine implementation: {failed.error}'
        return (
            f'Implementation: {self.backend.library_path}, '
            f'initialized: {initialized.value}, native test: {connection.value}'
        )
