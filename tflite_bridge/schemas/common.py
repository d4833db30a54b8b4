"""
Report models for diagnostics and the demo harness.
"""

from enum import Enum

from pydantic import BaseModel, Field


class CheckLevel(str, Enum):
    """Outcome of a single diagnostic check."""

    OK = 'ok'
    WARNING = 'warning'
    ERROR = 'error'


class DiagnosticCheck(BaseModel):
    """Result of one diagnostic check."""

    name: str
    level: CheckLevel
    detail: str = ''


class DiagnosticReport(BaseModel):
    """Environment, asset and native library diagnostics."""

    environment: dict[str, str] = Field(default_factory=dict)
    checks: list[DiagnosticCheck] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True when no check reported an error."""
        return all(check.level is not CheckLevel.ERROR for check in self.checks)

    def add(self, name: str, level: CheckLevel, detail: str = '') -> DiagnosticCheck:
        check = DiagnosticCheck(name=name, level=level, detail=detail)
        self.checks.append(check)
        return check


class HarnessReport(BaseModel):
    """Outcome of one demo harness run."""

    connection: str | None = Field(None, description='Connectivity string from the native library')
    model_path: str | None = Field(None, description='Model path handed to the detector')
    initialized: bool = Field(default=False, description='Detector initialization result')
    input_dimensions: list[int] | None = Field(None, description='Model input dimensions')
    image_file: str | None = Field(None, description='Image used for detection')
    raw_result: str | None = Field(None, description='Envelope returned by the detector')
    detected_objects: int = Field(
        default=-1, description='Parsed total_detections, -1 when unavailable'
    )
    errors: list[str] = Field(default_factory=list, description='Steps that failed')

    @property
    def succeeded(self) -> bool:
        return self.detected_objects >= 0 and not self.errors
