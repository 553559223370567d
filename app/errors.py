from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base for errors that map to a JSON body ``{"error": reason, "detail": ...}``."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason = "internal_error"

    def __init__(self, detail: str | None = None, *, reason: str | None = None, headers: dict | None = None):
        if reason:
            self.reason = reason
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.reason,
            headers=headers,
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "validation_error"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "unauthorized"

    def __init__(self, detail: str | None = None, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(detail, **kwargs)


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    reason = "forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "not_found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    reason = "conflict"


class InvalidSignature(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "invalid_signature"


class GatewayError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    reason = "gateway_error"


class InternalError(AppError):
    pass


class TokenRejected(AppError):
    """An access token cannot be used; ``reason`` is one of the TokenState values."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, state, detail: str | None = None):
        self.state = state
        if state.value == "invalid":
            self.status_code = status.HTTP_404_NOT_FOUND
        super().__init__(detail, reason=state.value)
