"""Domain-level exceptions for the draftflow workflow engine."""


class ConfigurationError(Exception):
    """Raised for an unknown flow kind/variant or an invalid branch transition."""

    def __init__(self, message: str, *, missing_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.missing_fields = list(missing_fields or [])


class StorageUnavailable(Exception):
    """Raised when the underlying draft storage cannot be read or written."""

    def __init__(self, message: str, *, session_id: str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id
