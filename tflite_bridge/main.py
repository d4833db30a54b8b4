"""
Detection bridge demo runner.

Loads the native library named by NATIVE_LIBRARY_PATH, prints diagnostics,
then runs the detection harness on the bundled model and test image.
All configuration comes from environment variables (see config/settings.py).

Run: python -m tflite_bridge.main
"""

import logging
import sys

from tflite_bridge.config import get_settings
from tflite_bridge.core.dependencies import create_detection_service
from tflite_bridge.services.diagnostics import DiagnosticsService
from tflite_bridge.services.harness import DetectionHarness


logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    logger.info('=== TensorFlow Lite Detection Bridge ===')
    logger.info(f"Native library: {settings.native_library_path or 'not configured'}")
    logger.info(f'Model: {settings.model_file_name}')
    logger.info('========================================')

    with create_detection_service(settings) as service:
        diagnostics = DiagnosticsService(settings, service).run()
        if not diagnostics.passed:
            logger.warning('Diagnostics reported errors; continuing with the detection test')

        report = DetectionHarness(service, settings).run()

    if report.succeeded:
        logger.info(f'Detection test passed: {report.detected_objects} object(s)')
        return 0

    for error in report.errors:
        logger.error(f'Detection test step failed: {error}')
    return 1


if __name__ == '__main__':
    sys.exit(main())
