"""
Domain errors raised by the service layer.

Routes never build HTTP errors for business outcomes themselves: services
raise one of these and the handlers registered in app.main render them as
{"detail": ..., "code": ...} with the status code carried by the class.
Client-visible messages are fixed strings; anything diagnostic goes to logs.
"""
from typing import Optional


class AppError(Exception):
    status_code = 500
    code = "internal"
    default_detail = "Something went wrong. Please try again."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_detail = "The request is invalid."


class MissingGuestData(ValidationError):
    code = "missing_guest_data"
    default_detail = "Guest information is required for a fortune that is not for yourself."


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_detail = "Invalid or expired token"


class InvalidCredentials(Unauthenticated):
    code = "invalid_credentials"
    default_detail = "Incorrect email or password."


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_detail = "You do not have access to this resource."


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_detail = "Resource not found."


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_detail = "This email is already registered. Please log in instead."


class BusinessRuleError(AppError):
    status_code = 400
    code = "business_rule"
    default_detail = "This action is not allowed right now."


class InsufficientFunds(AppError):
    status_code = 402
    code = "insufficient_funds"
    default_detail = "Not enough credits. Please buy more credits."


class GenerationFailed(AppError):
    """Upstream LLM failure. `reason` is one of the GenerationFailureKind values."""

    status_code = 502
    code = "generation_failed"
    default_detail = "Your fortune could not be read right now. No credits were charged."

    def __init__(self, reason: str, provider_status: Optional[int] = None):
        super().__init__()
        self.reason = reason
        self.provider_status = provider_status
        if reason == "timeout":
            self.status_code = 504

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["reason"] = self.reason
        return body


class Internal(AppError):
    pass
