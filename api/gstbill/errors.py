"""
Error taxonomy for the GST engine.

Engine functions raise these; the HTTP layer maps them to status codes.
Every error carries a stable ``error_code`` and a ``details`` dict so callers
can highlight the offending form field.
"""

from typing import Any, Dict, Optional


class GSTEngineError(Exception):
    """Base class for all engine errors."""

    error_code = "GST_ENGINE_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Caller-facing, recoverable

class ValidationError(GSTEngineError):
    error_code = "VALIDATION_ERROR"


class EmptyDocumentError(ValidationError):
    error_code = "EMPTY_DOCUMENT"


class ExceedsReturnableQuantityError(ValidationError):
    error_code = "EXCEEDS_RETURNABLE_QUANTITY"


class InvalidPaymentError(ValidationError):
    error_code = "INVALID_PAYMENT"


# Programmer-facing

class ConfigurationError(GSTEngineError):
    error_code = "CONFIGURATION_ERROR"


class UnsupportedTaxTypeError(ConfigurationError):
    error_code = "UNSUPPORTED_TAX_TYPE"


class ConsistencyError(GSTEngineError):
    """Totals do not reconstruct. Indicates an engine bug, never user input."""

    error_code = "CONSISTENCY_ERROR"


# Document store

class DocumentNotFoundError(GSTEngineError):
    error_code = "DOCUMENT_NOT_FOUND"


class ConcurrentUpdateError(GSTEngineError):
    error_code = "CONCURRENT_UPDATE"
