"""
Pydantic schemas for detection envelopes and reports.
"""

from tflite_bridge.schemas.common import (
    CheckLevel,
    DiagnosticCheck,
    DiagnosticReport,
    HarnessReport,
)
from tflite_bridge.schemas.envelope import DetectionEnvelope, DetectionStatus


__all__ = [
    'CheckLevel',
    'DetectionEnvelope',
    'DetectionStatus',
    'DiagnosticCheck',
    'DiagnosticReport',
    'HarnessReport',
]
