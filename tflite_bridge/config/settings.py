"""
Centralized configuration using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Use get_settings() to access the cached settings instance.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables.
    Example: NATIVE_LIBRARY_PATH=/opt/lib/libnativedetect.so python -m tflite_bridge.main
    """

    # ==========================================================================
    # Native Library
    # ==========================================================================
    native_library_path: str | None = Field(
        default=None, description='Shared library exporting the native detection function table'
    )

    # ==========================================================================
    # Model and Asset Configuration
    # ==========================================================================
    model_file_name: str = Field(
        default='yolo11n_float32.tflite', description='Bundled TensorFlow Lite model file'
    )

    model_extension: str = Field(
        default='.tflite', description='Expected model extension (mismatch only logs a warning)'
    )

    min_model_size_bytes: int = Field(
        default=1_000_000, description='Model files smaller than this are reported as suspicious'
    )

    test_image_file_name: str = Field(
        default='test.jpg', description='Bundled image used by the demo harness'
    )

    bundled_assets_dir: Path = Field(
        default=Path('assets'), description='Read-only directory holding bundled assets'
    )

    local_data_dir: Path = Field(
        default=Path('data'), description='Writable directory assets are copied into'
    )

    copy_assets_to_local: bool = Field(
        default=True, description='Copy bundled assets to local storage before first use'
    )

    # ==========================================================================
    # Harness Pacing
    # ==========================================================================
    step_delay_s: float = Field(
        default=1.0, ge=0.0, description='Presentation delay between harness steps'
    )

    result_delay_s: float = Field(
        default=2.0, ge=0.0, description='Presentation delay after the detection step'
    )

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(default='INFO', description='Root log level for the demo runner')

    log_envelopes: bool = Field(
        default=True, description='Debug-log every generated detection envelope'
    )

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def bundled_model_path(self) -> Path:
        """Model path inside the bundled asset store."""
        return self.bundled_assets_dir / self.model_file_name

    @property
    def bundled_test_image_path(self) -> Path:
        """Harness test image inside the bundled asset store."""
        return self.bundled_assets_dir / self.test_image_file_name

    @property
    def local_model_path(self) -> Path:
        """Model path inside writable local storage."""
        return self.local_data_dir / self.model_file_name

    class Config:
        env_prefix = ''  # No prefix for env vars
        case_sensitive = False
        extra = 'ignore'


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
