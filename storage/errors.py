"""
Storage error taxonomy.

Validation and configuration errors are raised to the caller immediately.
Backend errors wrap transport or filesystem failures on write paths.
"""


class StorageError(Exception):
    """Base class for storage errors."""

    code = "storage_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UploadValidationError(StorageError):
    """Payload rejected: missing file, oversize, disallowed type or bad category."""

    code = "validation_error"
    status_code = 400


class StorageConfigurationError(StorageError):
    """Write attempted against a backend that is not enabled or not configured."""

    code = "configuration_error"
    status_code = 500


class StorageBackendError(StorageError):
    """Transport or filesystem failure while writing."""

    code = "storage_error"
    status_code = 500
