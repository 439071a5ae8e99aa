"""API error classes.

Every failure the services raise maps to one of these classes so the
exception handlers in app.main can build a consistent error envelope.

Error kinds:
- ValidationError / MissingParametersError: required field missing or malformed
- HTTPException 401 from app.api.deps: no caller identity
- NotFoundError / InvalidTokenError: entity absent or not owned by caller
- TokenExpiredError: verification token past its expiry
- Store failures (sqlalchemy.exc.SQLAlchemyError) are not wrapped; they
  propagate unchanged to the catch-all handler.
"""


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(APIError):
    """Field validation failed (400).

    Use for request body validation errors, query param errors, etc.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class NotFoundError(APIError):
    """Resource not found (404).

    Use when requested resource doesn't exist OR doesn't belong to user.
    Revealing "exists but not yours" leaks information, so both cases
    share this error.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
        )


class ConflictError(APIError):
    """Duplicate or conflicting resource (409).

    Accepts custom code for specific conflict types.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )


class TokenVerificationError(APIError):
    """Base class for verification token failures.

    Attributes:
        reason: Short machine reason used in the frontend redirect
            (``missing_params``, ``invalid_token``, ``expired``).
    """

    reason: str = "invalid_token"


class MissingParametersError(TokenVerificationError):
    """Identifier or token absent from the verification request (400)."""

    reason = "missing_params"

    def __init__(self) -> None:
        super().__init__(
            code="MISSING_PARAMETERS",
            message="Both email and token are required",
            status_code=400,
        )


class InvalidTokenError(TokenVerificationError):
    """No verification token matches (identifier, token) (404)."""

    reason = "invalid_token"

    def __init__(self) -> None:
        super().__init__(
            code="INVALID_TOKEN",
            message="Invalid or already used verification link",
            status_code=404,
        )


class TokenExpiredError(TokenVerificationError):
    """Verification token found but past its expiry (400).

    The token row has already been deleted when this is raised.
    """

    reason = "expired"

    def __init__(self) -> None:
        super().__init__(
            code="TOKEN_EXPIRED",
            message="Verification link has expired. Please request a new one.",
            status_code=400,
        )


class UnregisteredModelError(APIError):
    """Model (or image size) missing from the pricing table (400).

    Security: The model name is intentionally included in the message.
    It comes from the caller's own request and carries no secret.

    Args:
        model: Model identifier (e.g., "gpt-4").
        size: Image size, for image-generation pricing lookups.
    """

    def __init__(self, model: str, size: str | None = None) -> None:
        if size is None:
            message = f"No pricing configured for model '{model}'"
        else:
            message = f"No pricing configured for model '{model}' at size '{size}'"
        super().__init__(
            code="UNREGISTERED_MODEL",
            message=message,
            status_code=400,
        )
