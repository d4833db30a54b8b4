"""
Shared pytest fixtures for detection bridge tests.
"""

import io
from pathlib import Path

import pytest
from PIL import Image

from tflite_bridge.clients.base import NativeResult
from tflite_bridge.config.settings import Settings
from tflite_bridge.services.detection import DetectionService


class FakeBackend:
    """
    Scripted detector backend.

    Each entry point returns the NativeResult stored in `results` under its
    method name; every call is recorded in `calls`.
    """

    library_path = 'fake://nativedetect'

    def __init__(self, **results):
        self.calls: list[tuple] = []
        self.results = {
            'initialize_detector': NativeResult.success(True),
            'detect_objects': NativeResult.success(0),
            'get_detailed_detections': NativeResult.success(None),
            'get_last_detections': NativeResult.success([]),
            'get_last_detection_count': NativeResult.success(0),
            'get_detection_info': NativeResult.success(None),
            'get_image_info': NativeResult.success([0, 3, 1]),
            'get_input_dimensions': NativeResult.success([320, 320, 3]),
            'is_initialized': NativeResult.success(True),
            'cleanup': NativeResult.success(None),
            'string_from_native': NativeResult.success('Hello from native'),
        }
        self.results.update(results)

    def _result(self, name, *args):
        self.calls.append((name, *args))
        return self.results[name]

    def method_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def initialize_detector(self, model_path):
        return self._result('initialize_detector', model_path)

    def detect_objects(self, image_bytes, width, height):
        return self._result('detect_objects', image_bytes, width, height)

    def get_detailed_detections(self, image_bytes, width, height):
        return self._result('get_detailed_detections', image_bytes, width, height)

    def get_last_detections(self):
        return self._result('get_last_detections')

    def get_last_detection_count(self):
        return self._result('get_last_detection_count')

    def get_detection_info(self, index):
        return self._result('get_detection_info', index)

    def get_image_info(self, image_bytes, width, height):
        return self._result('get_image_info', image_bytes, width, height)

    def get_input_dimensions(self):
        return self._result('get_input_dimensions')

    def is_initialized(self):
        return self._result('is_initialized')

    def cleanup(self):
        return self._result('cleanup')

    def string_from_native(self):
        return self._result('string_from_native')


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at per-test asset and data directories, no pacing delays."""
    bundled = tmp_path / 'assets'
    local = tmp_path / 'data'
    bundled.mkdir()
    local.mkdir()
    return Settings(
        bundled_assets_dir=bundled,
        local_data_dir=local,
        step_delay_s=0.0,
        result_delay_s=0.0,
    )


@pytest.fixture
def model_file(settings: Settings) -> Path:
    """A bundled model file large enough to pass the size check."""
    path = settings.bundled_model_path
    path.write_bytes(b'\x00' * (settings.min_model_size_bytes + 1))
    return path


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_service(settings: Settings, model_file: Path):
    """Factory for an initialized DetectionService over a scripted backend."""

    def _make(**results) -> tuple[DetectionService, FakeBackend]:
        fake = FakeBackend(**results)
        service = DetectionService(fake, settings)
        assert service.initialize(model_file)
        fake.calls.clear()
        return service, fake

    return _make


@pytest.fixture
def rgb_image() -> bytes:
    """A 4x2 RGB24 buffer."""
    return bytes(range(4 * 2 * 3))


@pytest.fixture
def png_bytes() -> bytes:
    """A 5x3 encoded PNG."""
    buffer = io.BytesIO()
    Image.new('RGB', (5, 3), color=(200, 30, 10)).save(buffer, format='PNG')
    return buffer.getvalue()
