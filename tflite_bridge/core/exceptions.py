"""
Custom exceptions for the detection bridge.

Raised at construction time (library loading, asset lookup, image decoding).
Detection calls themselves never raise; they degrade to an error envelope.
"""


class DetectorError(Exception):
    """Base exception for detector-related errors."""

    def __init__(self, message: str, library_path: str | None = None):
        self.message = message
        self.library_path = library_path
        super().__init__(self.message)


class NativeLibraryError(DetectorError):
    """Raised when the native library cannot be loaded or has the wrong ABI."""

    def __init__(self, library_path: str, reason: str):
        self.reason = reason
        message = f"Failed to load native library '{library_path}': {reason}"
        super().__init__(message, library_path)


class AssetNotFoundError(DetectorError):
    """Raised when a bundled asset is missing."""

    def __init__(self, file_name: str, search_dir: str):
        self.file_name = file_name
        self.search_dir = search_dir
        message = f"Asset '{file_name}' not found in {search_dir}"
        super().__init__(message)


class InvalidImageError(DetectorError):
    """Raised when image decoding or validation fails."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        message = f"Invalid image '{filename}': {reason}"
        super().__init__(message)
