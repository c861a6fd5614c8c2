"""
Errors that map onto the API error envelope.

Each subclass fixes its ``error_code`` and ``status_code`` at class level;
``to_dict`` renders ``{"success": false, "error", "code", "details"}``,
which the exception handlers in ``main`` return verbatim.
"""

from typing import Any


class AppException(Exception):
    error_code = "APP_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "code": self.error_code,
            "details": self.details,
        }


class EntityNotFoundException(AppException):
    error_code = "ENTITY_NOT_FOUND"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: str | None = None) -> None:
        suffix = f" with id '{entity_id}'" if entity_id else ""
        super().__init__(f"{entity_type}{suffix} not found", details={"entity": entity_type})


class DuplicateEntityException(AppException):
    error_code = "DUPLICATE_ENTITY"
    status_code = 409

    def __init__(self, entity_type: str, field: str, value: str) -> None:
        super().__init__(
            f"{entity_type} with {field}='{value}' already exists",
            details={"field": field, "value": value},
        )


class ValidationException(AppException):
    """Bad input; ``field_errors`` maps a parameter name to its messages."""

    error_code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message, details={"field_errors": field_errors or {}})


class InvalidActionException(AppException):
    error_code = "INVALID_ACTION"
    status_code = 400

    def __init__(self, action: str | None, allowed: list[str]) -> None:
        super().__init__(
            f"Invalid action. Use: {', '.join(allowed)}",
            details={"action": action, "allowed": allowed},
        )


class PermissionDeniedException(AppException):
    error_code = "PERMISSION_DENIED"
    status_code = 403

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message)


class InvalidSignatureException(AppException):
    error_code = "INVALID_SIGNATURE"
    status_code = 401

    def __init__(self, provider: str) -> None:
        super().__init__("Invalid signature", details={"provider": provider})


class PaymentFailedException(AppException):
    """The gateway answered, but the charge did not go through."""

    error_code = "PAYMENT_FAILED"
    status_code = 400

    def __init__(self, payment_status: str, reference: str) -> None:
        super().__init__(
            f"Payment {payment_status}",
            details={"reference": reference, "status": payment_status},
        )


class ServiceNotConfiguredException(AppException):
    error_code = "SERVICE_NOT_CONFIGURED"
    status_code = 503

    def __init__(self, service_name: str, setting: str) -> None:
        super().__init__(
            f"{service_name} is not configured",
            details={"service": service_name, "setting": setting},
        )


class ExternalServiceException(AppException):
    """A third-party call (Paystack, Firecrawl, the LLM gateway, a feed) failed."""

    error_code = "EXTERNAL_SERVICE_ERROR"
    status_code = 503
    service_name = "External service"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(
            f"{self.service_name}: {message}",
            details={"service": self.service_name, **details},
        )


class PaymentGatewayException(ExternalServiceException):
    status_code = 502
    service_name = "Paystack"

    def __init__(self, message: str = "Payment gateway request failed") -> None:
        super().__init__(message)


class ScraperServiceException(ExternalServiceException):
    status_code = 502
    service_name = "Scraper"

    def __init__(self, url: str, message: str = "Scrape failed") -> None:
        super().__init__(message, url=url)


class AIServiceException(ExternalServiceException):
    service_name = "LLM"

    def __init__(self, message: str = "AI request failed") -> None:
        super().__init__(message)
