"""
ctypes client for the native detection library.

The library exports a fixed C function table (NATIVE_FUNCTION_TABLE) plus
`nd_abi_version`. Symbols are resolved once, when the client is built; a
missing symbol is recorded and every later call to it returns
CallStatus.METHOD_NOT_FOUND. Negative native return codes are reported as
CallStatus.NATIVE_FAULT.

Returned strings are owned by the library and copied before the next call.

Usage:
    client = NativeLibClient.load('/opt/detect/libnativedetect.so')
    result = client.detect_objects(rgb_bytes, 640, 480)
    if result.ok:
        print(result.value)
"""

import ctypes
import logging
from ctypes import POINTER, c_bool, c_char_p, c_int, c_size_t, c_uint8
from typing import Any

import numpy as np

from tflite_bridge.clients.base import NativeResult
from tflite_bridge.core.exceptions import NativeLibraryError


logger = logging.getLogger(__name__)

NATIVE_ABI_VERSION = 1

# Length of the int arrays filled by nd_get_image_info / nd_get_input_dimensions
INFO_ARRAY_LENGTH = 3

_IMAGE_ARGS = [POINTER(c_uint8), c_size_t, c_int, c_int]

# symbol -> (argtypes, restype)
NATIVE_FUNCTION_TABLE: dict[str, tuple[list, Any]] = {
    'nd_initialize_detector': ([c_char_p], c_bool),
    'nd_detect_objects': (_IMAGE_ARGS, c_int),
    'nd_get_detailed_detections': (_IMAGE_ARGS, c_char_p),
    'nd_get_last_detection_count': ([], c_int),
    'nd_get_detection_info': ([c_int], c_char_p),
    'nd_get_image_info': ([*_IMAGE_ARGS, POINTER(c_int)], c_int),
    'nd_get_input_dimensions': ([POINTER(c_int)], c_int),
    'nd_is_initialized': ([], c_bool),
    'nd_cleanup': ([], None),
    'nd_string_from_native': ([], c_char_p),
}

# Printed in remediation hints when a call is missing or fails
EXPECTED_SIGNATURES: dict[str, str] = {
    'nd_initialize_detector': 'bool nd_initialize_detector(const char *model_path)',
    'nd_detect_objects': 'int nd_detect_objects(const uint8_t *data, size_t len, int width, int height)',
    'nd_get_detailed_detections': (
        'const char *nd_get_detailed_detections(const uint8_t *data, size_t len, int width, int height)'
    ),
    'nd_get_last_detection_count': 'int nd_get_last_detection_count(void)',
    'nd_get_detection_info': 'const char *nd_get_detection_info(int index)',
    'nd_get_image_info': (
        'int nd_get_image_info(const uint8_t *data, size_t len, int width, int height, int out[3])'
    ),
    'nd_get_input_dimensions': 'int nd_get_input_dimensions(int out[3])',
    'nd_is_initialized': 'bool nd_is_initialized(void)',
    'nd_cleanup': 'void nd_cleanup(void)',
    'nd_string_from_native': 'const char *nd_string_from_native(void)',
}


def _decode(value: bytes | None) -> str | None:
    if value is None:
        return None
    return value.decode('utf-8', errors='replace')


def _image_args(image_bytes: bytes, width: int, height: int) -> tuple:
    # The pointer keeps a reference to the array for the duration of the call
    buffer = np.frombuffer(image_bytes, dtype=np.uint8)
    return buffer.ctypes.data_as(POINTER(c_uint8)), buffer.size, width, height


class NativeLibClient:
    """
    Detector backend over the native C function table.

    Not thread-safe: the native library keeps per-process detection state.
    """

    def __init__(self, library: Any, library_path: str = '<in-process>'):
        """
        Bind the function table of an already loaded library.

        Args:
            library: ctypes.CDLL (or any object exposing the table's symbols)
            library_path: Path used in log and error messages

        Raises:
            NativeLibraryError: If the ABI version is missing or unsupported
        """
        self.library_path = library_path
        self.abi_version = self._check_abi_version(library)
        self.missing_symbols: list[str] = []
        self._functions: dict[str, Any] = {}

        for name, (argtypes, restype) in NATIVE_FUNCTION_TABLE.items():
            func = getattr(library, name, None)
            if func is None:
                self.missing_symbols.append(name)
                continue
            func.argtypes = argtypes
            func.restype = restype
            self._functions[name] = func

        if self.missing_symbols:
            logger.warning(
                f'Native library {library_path} is missing {len(self.missing_symbols)} '
                f'symbol(s): {", ".join(self.missing_symbols)}'
            )
        logger.info(
            f'Native library bound ({library_path}, ABI v{self.abi_version}, '
            f'{len(self._functions)}/{len(NATIVE_FUNCTION_TABLE)} entry points)'
        )

    @classmethod
    def load(cls, library_path: str) -> 'NativeLibClient':
        """
        Load a shared library from disk and bind its function table.

        Raises:
            NativeLibraryError: If the library cannot be loaded or has the wrong ABI
        """
        try:
            library = ctypes.CDLL(library_path)
        except OSError as e:
            raise NativeLibraryError(library_path, str(e)) from e
        return cls(library, library_path)

    def _check_abi_version(self, library: Any) -> int:
        func = getattr(library, 'nd_abi_version', None)
        if func is None:
            raise NativeLibraryError(self.library_path, 'missing required symbol nd_abi_version')
        func.argtypes = []
        func.restype = c_int
        version = func()
        if version != NATIVE_ABI_VERSION:
            raise NativeLibraryError(
                self.library_path,
                f'unsupported ABI version {version} (expected {NATIVE_ABI_VERSION})',
            )
        return version

    def has_symbol(self, name: str) -> bool:
        return name in self._functions

    def _call(self, name: str, *args) -> NativeResult:
        func = self._functions.get(name)
        if func is None:
            return NativeResult.method_not_found(name)
        try:
            return NativeResult.success(func(*args))
        except Exception as e:
            logger.error(f'{name} raised {type(e).__name__}: {e}')
            return NativeResult.fault(f'{name}: {e}')

    def _call_status_code(self, name: str, *args) -> NativeResult:
        result = self._call(name, *args)
        if result.ok and result.value < 0:
            return NativeResult.fault(f'{name} returned error code {result.value}')
        return result

    # =========================================================================
    # Core entry points
    # =========================================================================
    def initialize_detector(self, model_path: str) -> NativeResult[bool]:
        result = self._call('nd_initialize_detector', model_path.encode('utf-8'))
        return NativeResult.success(bool(result.value)) if result.ok else result

    def detect_objects(self, image_bytes: bytes, width: int, height: int) -> NativeResult[int]:
        return self._call_status_code(
            'nd_detect_objects', *_image_args(image_bytes, width, height)
        )

    def get_detailed_detections(
        self, image_bytes: bytes, width: int, height: int
    ) -> NativeResult[str | None]:
        result = self._call(
            'nd_get_detailed_detections', *_image_args(image_bytes, width, height)
        )
        return NativeResult.success(_decode(result.value)) if result.ok else result

    def is_initialized(self) -> NativeResult[bool]:
        result = self._call('nd_is_initialized')
        return NativeResult.success(bool(result.value)) if result.ok else result

    def cleanup(self) -> NativeResult[None]:
        result = self._call('nd_cleanup')
        return NativeResult.success(None) if result.ok else result

    def string_from_native(self) -> NativeResult[str | None]:
        result = self._call('nd_string_from_native')
        return NativeResult.success(_decode(result.value)) if result.ok else result

    # =========================================================================
    # Extended entry points
    # =========================================================================
    def get_last_detection_count(self) -> NativeResult[int]:
        return self._call_status_code('nd_get_last_detection_count')

    def get_detection_info(self, index: int) -> NativeResult[str | None]:
        result = self._call('nd_get_detection_info', index)
        return NativeResult.success(_decode(result.value)) if result.ok else result

    def get_last_detections(self) -> NativeResult[list[str]]:
        """Detection strings from the last inference, in native order."""
        count = self.get_last_detection_count()
        if not count.ok:
            return count.failed_as()

        detections = []
        for index in range(count.value):
            info = self.get_detection_info(index)
            if not info.ok:
                return info.failed_as()
            if info.value is None:
                return NativeResult.fault(f'nd_get_detection_info returned NULL for index {index}')
            detections.append(info.value)
        return NativeResult.success(detections)

    def get_image_info(self, image_bytes: bytes, width: int, height: int) -> NativeResult[list[int]]:
        """[data_size, channels, is_valid] as seen by the native library."""
        out = (c_int * INFO_ARRAY_LENGTH)()
        result = self._call_status_code(
            'nd_get_image_info', *_image_args(image_bytes, width, height), out
        )
        return NativeResult.success(list(out)) if result.ok else result

    def get_input_dimensions(self) -> NativeResult[list[int]]:
        """Model input as [width, height, channels]."""
        out = (c_int * INFO_ARRAY_LENGTH)()
        result = self._call_status_code('nd_get_input_dimensions', out)
        return NativeResult.success(list(out)) if result.ok else result
