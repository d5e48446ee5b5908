"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class SpotExportError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(SpotExportError):
    """Raised for issues related to configuration loading or validation."""


class AuthenticationError(SpotExportError):
    """Raised when no usable credentials could be resolved."""


class ConnectionFailedError(SpotExportError):
    """Raised when a session with the streaming service cannot be established."""


class ContainerExpansionError(SpotExportError):
    """Raised when an album, playlist or show cannot be expanded into items."""


class AcquisitionError(SpotExportError):
    """
    Raised when a single item cannot be acquired. The item is dropped and the
    run continues with the next one.
    """

    def __init__(self, reason: str, item_id: str | None = None):
        self.reason = reason
        self.item_id = item_id
        super().__init__(reason if item_id is None else f"<{item_id}> {reason}")


class UnavailableError(AcquisitionError):
    """Raised when an item and all of its declared alternatives are unavailable."""


class NoUsableEncodingError(AcquisitionError):
    """Raised when an item offers no Ogg Vorbis encoding."""


class NoCoverArtError(AcquisitionError):
    """Raised when artwork is required but the item has none."""


class DeliveryError(SpotExportError):
    """Raised when an acquired item cannot be written to its destination."""


class HelperFailedError(DeliveryError):
    """Raised when the external tagging helper cannot run or exits non-zero."""

    def __init__(self, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(message)


class FileIntegrityError(DeliveryError):
    """Raised when a written file fails a post-write integrity check."""
