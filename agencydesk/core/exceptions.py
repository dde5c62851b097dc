from agencydesk.core.decision import DenyReason


class AgencyDeskException(Exception):
    """Base exception for AgencyDesk"""

    pass


class UnauthorizedException(AgencyDeskException):
    """Raised when no valid principal can be resolved from the token"""

    pass


class NotFoundException(AgencyDeskException):
    """Raised when a resource or a link in its ownership chain is missing"""

    pass


class ForbiddenException(AgencyDeskException):
    """Raised when a principal may not perform an action"""

    pass


class AccessDeniedException(ForbiddenException):
    """Raised when the access resolver denies a request; carries the reason code"""

    def __init__(self, reason: DenyReason, detail: str | None = None):
        self.reason = reason
        super().__init__(detail or f"Forbidden: {reason.value}")


class ConflictException(AgencyDeskException):
    """Raised when a write would violate a uniqueness rule"""

    def __init__(self, message: str, reason: DenyReason | None = None):
        self.reason = reason
        super().__init__(message)


class ValidationException(AgencyDeskException):
    """Raised for business logic validation errors"""

    pass


class ConfigurationError(AgencyDeskException):
    """Raised at setup time when roles reference unknown permission groups or keys"""

    pass
