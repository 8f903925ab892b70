"""Domain errors."""


class ValidationError(ValueError):
    """Raised when input is rejected before reaching storage."""
