"""Error definitions for ci_models.

Every error carries a stable ``code`` for programmatic handling. Errors
raised by collaborators (datastore, source control, token sealer,
executor) are never wrapped and reach the caller unchanged.
"""

from typing import Any

# Error code constants
CONFIGURATION_ERROR = "configuration_error"
VALIDATION_ERROR = "validation"
UNKNOWN_MODEL = "unknown_model"
MODEL_ERROR = "model_error"


class ModelError(Exception):
    """Base error for record and factory operations."""

    def __init__(self, message: str, code: str = MODEL_ERROR) -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(ModelError):
    """Raised when a factory is first constructed without a mandatory collaborator."""

    def __init__(self, message: str, code: str = CONFIGURATION_ERROR) -> None:
        super().__init__(message, code=code)


class NotFoundError(ModelError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, kind: str, code: str | None = None) -> None:
        super().__init__(
            f"{kind.capitalize()} does not exist",
            code=code or f"{kind}_not_found",
        )
        self.kind = kind


class RecordValidationError(ModelError):
    """Raised when a record's config does not satisfy its schema."""

    def __init__(
        self,
        message: str,
        details: list[dict[str, Any]] | None = None,
        code: str = VALIDATION_ERROR,
    ) -> None:
        super().__init__(message, code=code)
        self.details = details or []


class UnknownModelError(ModelError):
    """Raised when an entity kind or table has no registered schema."""

    def __init__(self, name: str, code: str = UNKNOWN_MODEL) -> None:
        super().__init__(f"Unknown model: {name}", code=code)
        self.name = name


__all__ = [
    "CONFIGURATION_ERROR",
    "MODEL_ERROR",
    "UNKNOWN_MODEL",
    "VALIDATION_ERROR",
    "ConfigurationError",
    "ModelError",
    "NotFoundError",
    "RecordValidationError",
    "UnknownModelError",
]
