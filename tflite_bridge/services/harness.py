"""
Step-by-step detection demo.

Runs the same sequence a device build runs on start: native connection test,
model copy and initialization, then detection on the bundled test image.
The pauses between steps only pace log output for a human watching; they do
not synchronize anything.
"""

import logging
import time
from collections.abc import Callable

from tflite_bridge.config import Settings, get_settings
from tflite_bridge.core.exceptions import AssetNotFoundError
from tflite_bridge.schemas.common import HarnessReport
from tflite_bridge.services.detection import DetectionService
from tflite_bridge.services.interpreter import parse_envelope, parse_total_detections
from tflite_bridge.utils.assets import ensure_local_asset


logger = logging.getLogger(__name__)


class DetectionHarness:
    """Sequential demo over an opened DetectionService."""

    def __init__(
        self,
        service: DetectionService,
        settings: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.service = service
        self.settings = settings or get_settings()
        self._sleep = sleep

    def _pace(self, seconds: float) -> None:
        if seconds > 0:
            self._sleep(seconds)

    def run(self) -> HarnessReport:
        """Run every step; a failed step ends the run early."""
        logger.info('=== Starting Detection Test ===')
        report = HarnessReport()

        self.test_connection(report)
        self._pace(self.settings.step_delay_s)

        if self.initialize_model(report):
            self._pace(self.settings.step_delay_s)
            self.detect_test_image(report)
            self._pace(self.settings.result_delay_s)

        logger.info('=== Detection Test Completed ===')
        return report

    def test_connection(self, report: HarnessReport) -> None:
        logger.info('--- Testing Native Library Connection ---')
        report.connection = self.service.test_connection()
        logger.info(f'Test string from native library: {report.connection}')

    def initialize_model(self, report: HarnessReport) -> bool:
        logger.info('--- Initializing Model ---')
        settings = self.settings
        try:
            model_path = ensure_local_asset(
                settings.model_file_name,
                settings.bundled_assets_dir,
                settings.local_data_dir,
                copy=settings.copy_assets_to_local,
            )
        except AssetNotFoundError as e:
            logger.error(f'Model file not available: {e.message}')
            report.errors.append(f'model: {e.message}')
            return False

        report.model_path = str(model_path)
        report.initialized = self.service.initialize(model_path)
        if not report.initialized:
            logger.error('Model initialization failed')
            report.errors.append('model: initialization failed')
            return False

        report.input_dimensions = self.service.get_input_dimensions()
        if report.input_dimensions and len(report.input_dimensions) >= 3:
            width, height, channels = report.input_dimensions[:3]
            logger.info(f'Model input dimensions: {width}x{height}x{channels}')
        else:
            logger.warning('Could not retrieve input dimensions')
        return True

    def detect_test_image(self, report: HarnessReport) -> None:
        logger.info('--- Loading and Testing Image ---')
        if not self.service.is_initialized():
            logger.error('Cannot test image: model not initialized')
            report.errors.append('detection: model not initialized')
            return

        image_path = self.settings.bundled_test_image_path
        if not image_path.is_file():
            logger.error(f'Test image not found: {image_path}')
            report.errors.append(f'detection: test image not found at {image_path}')
            return

        report.image_file = str(image_path)
        report.raw_result = self.service.detect_image(image_path.read_bytes(), image_path.name)
        report.detected_objects = parse_total_detections(report.raw_result)

        envelope = parse_envelope(report.raw_result)
        if envelope is None:
            logger.error(f'Detection failed with error code: {report.detected_objects}')
            report.errors.append('detection: response could not be interpreted')
            return
        if not envelope.ok:
            logger.error(f'Detection returned {envelope.status.value}: {envelope.message}')
            report.errors.append(f'detection: {envelope.status.value}: {envelope.message}')
            return

        logger.info(f'Detection completed! Found {report.detected_objects} objects')
        logger.info(f'Full detection JSON: {report.raw_result}')
