from typing import Any, Optional


class AppError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised when request input is malformed or incomplete."""

    def __init__(self, message: str = "Validation failed", details: Optional[Any] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class NotFoundError(AppError):
    """Raised when a record id is unknown."""

    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
            details=details,
        )


class AuthError(AppError):
    """Raised on bad credentials. The message never says which field was wrong."""

    def __init__(self, message: str = "Invalid credentials", details: Optional[Any] = None):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
            details=details,
        )


class ConflictError(AppError):
    """Raised when a unique field (email, username) is already taken."""

    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(
            code="CONFLICT",
            message=message,
            status_code=400,
            details=details,
        )


class InsufficientCreditsError(AppError):
    """Raised when a user cannot pay for a generation. Nothing is written."""

    def __init__(self, message: str = "Insufficient credits", details: Optional[Any] = None):
        super().__init__(
            code="INSUFFICIENT_CREDITS",
            message=message,
            status_code=400,
            details=details,
        )


class GenerationError(AppError):
    """Raised when the external generation call fails."""

    def __init__(self, message: str = "Code generation failed", details: Optional[Any] = None):
        super().__init__(
            code="GENERATION_ERROR",
            message=message,
            status_code=500,
            details=details,
        )


class PaymentError(AppError):
    """Raised for payment provider failures and unpaid orders."""

    def __init__(
        self,
        message: str = "Payment provider error",
        status_code: int = 503,
        details: Optional[Any] = None,
    ):
        super().__init__(
            code="PAYMENT_ERROR",
            message=message,
            status_code=status_code,
            details=details,
        )
