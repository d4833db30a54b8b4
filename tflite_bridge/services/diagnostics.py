"""
Deployment diagnostics.

Checks the things that usually break a device build before detection runs:
missing or truncated bundled assets, unwritable local storage, and a native
library that is absent or not answering.
"""

import logging
import platform
import sys
from pathlib import Path

from tflite_bridge.clients.native_lib import NATIVE_FUNCTION_TABLE, NativeLibClient
from tflite_bridge.config import Settings, get_settings
from tflite_bridge.schemas.common import CheckLevel, DiagnosticReport
from tflite_bridge.services.detection import DetectionService
from tflite_bridge.utils.assets import list_assets


logger = logging.getLogger(__name__)

_WRITE_PROBE = '.write_test'

_LOG_LEVELS = {
    CheckLevel.OK: logging.INFO,
    CheckLevel.WARNING: logging.WARNING,
    CheckLevel.ERROR: logging.ERROR,
}


class DiagnosticsService:
    """Builds a DiagnosticReport for the current settings and detector."""

    def __init__(self, settings: Settings | None = None, service: DetectionService | None = None):
        self.settings = settings or get_settings()
        self.service = service

    def run(self) -> DiagnosticReport:
        logger.info('=== DIAGNOSTIC REPORT ===')
        report = DiagnosticReport(environment=self._environment())

        self._check_bundled_assets(report)
        self._check_model_file(report)
        self._check_file(report, 'test_image', self.settings.bundled_test_image_path)
        self._check_local_storage(report)
        self._check_native_library(report)

        for check in report.checks:
            logger.log(
                _LOG_LEVELS[check.level], f'[{check.level.value}] {check.name}: {check.detail}'
            )
        logger.info('=== END DIAGNOSTIC REPORT ===')
        return report

    def _environment(self) -> dict[str, str]:
        return {
            'platform': platform.platform(),
            'python': sys.version.split()[0],
            'bundled_assets_dir': str(self.settings.bundled_assets_dir),
            'local_data_dir': str(self.settings.local_data_dir),
            'native_library_path': self.settings.native_library_path or '',
        }

    def _check_bundled_assets(self, report: DiagnosticReport) -> None:
        bundled_dir = Path(self.settings.bundled_assets_dir)
        if not bundled_dir.is_dir():
            report.add('bundled_assets', CheckLevel.ERROR, f'{bundled_dir} does not exist')
            return

        assets = list_assets(bundled_dir)
        listing = ', '.join(f'{name} ({size} bytes)' for name, size in assets.items())
        report.add('bundled_assets', CheckLevel.OK, f'{len(assets)} file(s): {listing}')

    def _check_file(self, report: DiagnosticReport, name: str, path: Path) -> int | None:
        if not path.is_file():
            report.add(name, CheckLevel.ERROR, f'{path.name} not found at {path}')
            return None
        size = path.stat().st_size
        report.add(name, CheckLevel.OK, f'{path.name} exists ({size} bytes)')
        return size

    def _check_model_file(self, report: DiagnosticReport) -> None:
        size = self._check_file(report, 'model_file', self.settings.bundled_model_path)
        if size is None:
            return
        if size <= self.settings.min_model_size_bytes:
            report.add(
                'model_size',
                CheckLevel.WARNING,
                f'model file seems small ({size} bytes) - verify it is complete',
            )
        else:
            report.add('model_size', CheckLevel.OK, f'{size // 1024 // 1024}MB')

    def _check_local_storage(self, report: DiagnosticReport) -> None:
        local_dir = Path(self.settings.local_data_dir)
        if not local_dir.is_dir():
            report.add('local_storage', CheckLevel.ERROR, f'{local_dir} does not exist')
            return

        probe = local_dir / _WRITE_PROBE
        try:
            probe.write_text('ok')
            probe.unlink()
        except OSError as e:
            report.add('local_storage', CheckLevel.ERROR, f'cannot write to {local_dir}: {e}')
            return
        report.add('local_storage', CheckLevel.OK, f'{local_dir} is writable')

        local_model = self.settings.local_model_path
        if local_model.is_file():
            report.add(
                'local_model',
                CheckLevel.OK,
                f'model already copied ({local_model.stat().st_size} bytes)',
            )
        else:
            report.add('local_model', CheckLevel.OK, 'model not yet copied (normal on first run)')

    def _check_native_library(self, report: DiagnosticReport) -> None:
        if self.service is None or self.service.backend is None:
            report.add('native_library', CheckLevel.WARNING, 'no native library loaded, check skipped')
            return

        response = self.service.test_connection()
        if response is None:
            report.add('native_library', CheckLevel.ERROR, 'native library did not respond')
        else:
            report.add('native_library', CheckLevel.OK, f'native library responds: {response}')

        self._check_native_symbols(report)

    def _check_native_symbols(self, report: DiagnosticReport) -> None:
        backend = self.service.backend
        if not isinstance(backend, NativeLibClient):
            return

        missing = [name for name in NATIVE_FUNCTION_TABLE if not backend.has_symbol(name)]
        if missing:
            report.add(
                'native_symbols',
                CheckLevel.WARNING,
                f'{len(missing)} entry point(s) missing: {", ".join(missing)}',
            )
        else:
            report.add(
                'native_symbols',
                CheckLevel.OK,
                f'all {len(NATIVE_FUNCTION_TABLE)} entry points bound (ABI v{backend.abi_version})',
            )
