"""
Typed contract for the native detection boundary.

Every backend call returns a NativeResult instead of raising. The status tells
callers whether the entry point exists in the loaded library
(METHOD_NOT_FOUND) or failed while running (NATIVE_FAULT).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Protocol, TypeVar


T = TypeVar('T')


class CallStatus(str, Enum):
    """Outcome of a single native call."""

    OK = 'ok'
    METHOD_NOT_FOUND = 'method_not_found'
    NATIVE_FAULT = 'native_fault'


@dataclass(frozen=True)
class NativeResult(Generic[T]):
    """Value or typed failure returned across the native boundary."""

    status: CallStatus
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is CallStatus.OK

    @classmethod
    def success(cls, value: T) -> 'NativeResult[T]':
        return cls(CallStatus.OK, value)

    @classmethod
    def method_not_found(cls, method: str) -> 'NativeResult[T]':
        return cls(CallStatus.METHOD_NOT_FOUND, error=f"Native method '{method}' not found")

    @classmethod
    def fault(cls, error: str) -> 'NativeResult[T]':
        return cls(CallStatus.NATIVE_FAULT, error=error)

    def failed_as(self) -> 'NativeResult':
        """Re-type a failed result so it can be returned from another call."""
        return NativeResult(self.status, error=self.error)


class DetectorBackend(Protocol):
    """
    Entry points of the external detection library.

    Image buffers are packed pixel bytes (RGB24 unless the library says
    otherwise) with explicit width and height.
    """

    library_path: str

    def initialize_detector(self, model_path: str) -> NativeResult[bool]: ...

    def detect_objects(self, image_bytes: bytes, width: int, height: int) -> NativeResult[int]: ...

    def get_detailed_detections(
        self, image_bytes: bytes, width: int, height: int
    ) -> NativeResult[str | None]: ...

    def get_last_detections(self) -> NativeResult[list[str]]: ...

    def get_last_detection_count(self) -> NativeResult[int]: ...

    def get_detection_info(self, index: int) -> NativeResult[str | None]: ...

    def get_image_info(self, image_bytes: bytes, width: int, height: int) -> NativeResult[list[int]]: ...

    def get_input_dimensions(self) -> NativeResult[list[int]]: ...

    def is_initialized(self) -> NativeResult[bool]: ...

    def cleanup(self) -> NativeResult[None]: ...

    def string_from_native(self) -> NativeResult[str | None]: ...
