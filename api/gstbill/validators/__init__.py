"""
Validators for computed documents.
"""

from .document_validator import assert_consistent, validate_document_totals

__all__ = ["validate_document_totals", "assert_consistent"]
