"""
Tests for the step-by-step detection demo.
"""

from unittest.mock import patch

from tflite_bridge import main as entry_point
from tflite_bridge.clients.base import NativeResult
from tflite_bridge.services.detection import DetectionService
from tflite_bridge.services.harness import DetectionHarness
from tests.conftest import FakeBackend


def _harness(settings, backend, sleeps=None):
    service = DetectionService(backend, settings).open()
    sleep = sleeps.append if sleeps is not None else (lambda seconds: None)
    return DetectionHarness(service, settings, sleep=sleep)


class TestDetectionHarness:
    def test_full_run(self, settings, model_file, png_bytes):
        settings.bundled_test_image_path.write_bytes(png_bytes)
        backend = FakeBackend(
            detect_objects=NativeResult.success(1),
            get_detailed_detections=NativeResult.success('[{"class":"person"}]'),
        )

        report = _harness(settings, backend).run()

        assert report.succeeded
        assert report.connection == 'Hello from native'
        assert report.model_path == str(settings.local_model_path)
        assert settings.local_model_path.is_file()
        assert report.input_dimensions == [320, 320, 3]
        assert report.detected_objects == 1
        assert '"detections":[{"class":"person"}]' in report.raw_result
        detect_call = next(call for call in backend.calls if call[0] == 'detect_objects')
        assert detect_call[2:] == (5, 3)

    def test_missing_model_stops_run(self, settings):
        backend = FakeBackend()

        report = _harness(settings, backend).run()

        assert not report.succeeded
        assert report.errors[0].startswith('model:')
        assert 'initialize_detector' not in backend.method_names()
        assert 'detect_objects' not in backend.method_names()

    def test_initialization_failure(self, settings, model_file):
        backend = FakeBackend(initialize_detector=NativeResult.success(False))

        report = _harness(settings, backend).run()

        assert report.errors == ['model: initialization failed']
        assert report.detected_objects == -1

    def test_missing_test_image(self, settings, model_file):
        report = _harness(settings, FakeBackend()).run()

        assert report.initialized
        assert report.errors[0].startswith('detection: test image not found')

    def test_native_state_lost(self, settings, model_file, png_bytes):
        settings.bundled_test_image_path.write_bytes(png_bytes)
        backend = FakeBackend(is_initialized=NativeResult.success(False))

        report = _harness(settings, backend).run()

        assert report.errors == ['detection: model not initialized']
        assert 'detect_objects' not in backend.method_names()

    def test_native_fault_fails_detection_step(self, settings, model_file, png_bytes):
        settings.bundled_test_image_path.write_bytes(png_bytes)
        backend = FakeBackend(detect_objects=NativeResult.fault('interpreter crashed'))

        report = _harness(settings, backend).run()

        assert not report.succeeded
        assert report.detected_objects == 0
        assert report.errors == [
            'detection: error: Native fault in nd_detect_objects: interpreter crashed'
        ]

    def test_undecodable_test_image_fails_detection_step(self, settings, model_file):
        settings.bundled_test_image_path.write_bytes(b'not an image')
        backend = FakeBackend()

        report = _harness(settings, backend).run()

        assert not report.succeeded
        assert report.errors[0].startswith("detection: error: Invalid image 'test.jpg'")
        assert 'detect_objects' not in backend.method_names()

    def test_pacing(self, settings, model_file, png_bytes):
        settings.bundled_test_image_path.write_bytes(png_bytes)
        settings = settings.model_copy(update={'step_delay_s': 1.0, 'result_delay_s': 2.0})
        sleeps: list[float] = []

        _harness(settings, FakeBackend(), sleeps).run()

        assert sleeps == [1.0, 1.0, 2.0]


class TestMain:
    def test_exit_code_without_native_library(self, settings, model_file):
        with patch.object(entry_point, 'get_settings', return_value=settings):
            assert entry_point.main() == 1

    def test_exit_code_with_backend(self, settings, model_file, png_bytes):
        settings.bundled_test_image_path.write_bytes(png_bytes)
        service = DetectionService(FakeBackend(), settings)

        with (
            patch.object(entry_point, 'get_settings', return_value=settings),
            patch.object(entry_point, 'create_detection_service', return_value=service),
        ):
            assert entry_point.main() == 0

    def test_exit_code_on_detection_error(self, settings, model_file, png_bytes):
        settings.bundled_test_image_path.write_bytes(png_bytes)
        service = DetectionService(
            FakeBackend(detect_objects=NativeResult.fault('interpreter crashed')), settings
        )

        with (
            patch.object(entry_point, 'get_settings', return_value=settings),
            patch.object(entry_point, 'create_detection_service', return_value=service),
        ):
            assert entry_point.main() == 1
