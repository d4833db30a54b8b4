"""
Client modules for the external detection library.

- DetectorBackend / NativeResult / CallStatus: typed native boundary (base)
- NativeLibClient: ctypes binding of the native function table (native_lib)
"""

from tflite_bridge.clients.base import CallStatus, DetectorBackend, NativeResult
from tflite_bridge.clients.native_lib import (
    EXPECTED_SIGNATURES,
    NATIVE_ABI_VERSION,
    NATIVE_FUNCTION_TABLE,
    NativeLibClient,
)


__all__ = [
    'EXPECTED_SIGNATURES',
    'NATIVE_ABI_VERSION',
    'NATIVE_FUNCTION_TABLE',
    'CallStatus',
    'DetectorBackend',
    'NativeLibClient',
    'NativeResult',
]
