"""Error classes for the mortgage calculator.

Errors carry structured information so that the outer surfaces (CLI, web API)
can report them as data instead of tracebacks.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CalculatorError(Exception):
    """Base class for all calculator errors."""

    error_code: str = "CALCULATOR_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to structured format for the outer surfaces."""
        return {
            "message": self.message,
            "code": self.error_code,
            **self.context,
        }


class ValidationError(CalculatorError):
    """One or more input fields are invalid.

    Every offending field is reported; validation of sibling fields is not
    aborted by the first failure.

    Args:
        message: Overall message (optional if errors provided)
        errors: Field errors, each with 'field', 'message' and 'code'
            Example: [{"field": "loan_amount", "message": "...", "code": "INVALID_VALUE"}]
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        **context: Any,
    ) -> None:
        self.errors: List[Dict[str, str]] = list(errors or [])
        if self.errors:
            msg = message or "Validation failed"
        else:
            msg = message or "Validation error"
        super().__init__(msg, **context)

    def field_messages(self) -> Dict[str, str]:
        """Return a ``field -> message`` mapping (first message per field)."""
        messages: Dict[str, str] = {}
        for error in self.errors:
            messages.setdefault(error["field"], error["message"])
        return messages

    def to_dict(self) -> Dict[str, Any]:
        if self.errors:
            return {
                "message": self.message,
                "code": self.error_code,
                "errors": self.errors,
                **self.context,
            }
        return super().to_dict()


class ConflictError(CalculatorError):
    """The extra payment plan mixes recurring and custom total payments."""

    error_code: str = "CONFLICT"


class ComputationError(CalculatorError):
    """The engine was asked to run with inputs that validation should have rejected."""

    error_code: str = "COMPUTATION_ERROR"
