"""
Service layer containing the detection logic.

Separates envelope construction, interpretation and the fallback chain from
native bindings and the demo entry point.
"""

from tflite_bridge.services.detection import DetectionService
from tflite_bridge.services.diagnostics import DiagnosticsService
from tflite_bridge.services.harness import DetectionHarness
from tflite_bridge.services.interpreter import (
    has_envelope_key,
    parse_envelope,
    parse_total_detections,
)
from tflite_bridge.services.response import build_response, join_detection_entries


__all__ = [
    'DetectionHarness',
    'DetectionService',
    'DiagnosticsService',
    'build_response',
    'has_envelope_key',
    'join_detection_entries',
    'parse_envelope',
    'parse_total_detections',
]
