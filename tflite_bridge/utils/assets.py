"""
Bundled asset access.

Models and test images ship in a read-only bundle. The native library needs a
real file path, so on device-style deployments the asset is copied into
writable local storage once and reused afterwards.
"""

import logging
import shutil
from pathlib import Path

from tflite_bridge.core.exceptions import AssetNotFoundError


logger = logging.getLogger(__name__)


def ensure_local_asset(
    file_name: str,
    bundled_dir: Path,
    local_dir: Path,
    copy: bool = True,
) -> Path:
    """
    Return a readable path for a bundled asset.

    Args:
        file_name: Asset name inside the bundle
        bundled_dir: Read-only bundle directory
        local_dir: Writable directory the asset is copied into
        copy: When False the bundled file is used in place

    Returns:
        Path to the asset (local copy or bundled file)

    Raises:
        AssetNotFoundError: If the asset is not in the bundle (and no local copy exists)
    """
    bundled_path = Path(bundled_dir) / file_name

    if not copy:
        if not bundled_path.is_file():
            raise AssetNotFoundError(file_name, str(bundled_dir))
        logger.info(f'Using bundled asset in place: {bundled_path} ({bundled_path.stat().st_size} bytes)')
        return bundled_path

    local_path = Path(local_dir) / file_name
    if local_path.is_file() and local_path.stat().st_size > 0:
        logger.info(f'Asset already in local storage: {local_path} ({local_path.stat().st_size} bytes)')
        return local_path

    if not bundled_path.is_file():
        raise AssetNotFoundError(file_name, str(bundled_dir))

    logger.info(f'Copying asset {bundled_path} -> {local_path}')
    local_path.parent.mkdir(parents=True, exist_ok=True)
    # Copy to a temp name first so an interrupted copy is never picked up as complete
    partial_path = local_path.with_name(local_path.name + '.partial')
    shutil.copyfile(bundled_path, partial_path)
    partial_path.replace(local_path)

    logger.info(f'Asset copied successfully ({local_path.stat().st_size} bytes)')
    return local_path


def list_assets(bundled_dir: Path) -> dict[str, int]:
    """Bundled file names mapped to their sizes in bytes."""
    bundled_dir = Path(bundled_dir)
    if not bundled_dir.is_dir():
        return {}
    return {
        path.name: path.stat().st_size
        for path in sorted(bundled_dir.iterdir())
        if path.is_file()
    }
