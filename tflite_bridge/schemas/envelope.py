"""
Detection envelope schema.

Every detection call returns this four-field structure, regardless of which
native entry point produced the results. Individual detection records are
opaque at this layer.
"""

from enum import Enum

from pydantic import BaseModel, Field


class DetectionStatus(str, Enum):
    """Envelope status values."""

    SUCCESS = 'success'
    ERROR = 'error'
    WARNING = 'warning'


class DetectionEnvelope(BaseModel):
    """
    Canonical detection response.

    Key order on the wire is fixed: total_detections, detections, status, message.
    """

    total_detections: int = Field(..., ge=0, description='Number of detected objects')
    detections: list = Field(
        default_factory=list, description='Detection records, passed through unvalidated'
    )
    status: DetectionStatus = Field(..., description="'success', 'error' or 'warning'")
    message: str = Field(default='', description='Human-readable outcome')

    @property
    def ok(self) -> bool:
        return self.status is DetectionStatus.SUCCESS
