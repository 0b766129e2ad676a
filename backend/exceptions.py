"""
Domain errors raised by the crud layer.

Routers never build error bodies themselves: main.py registers one handler per
class below and turns it into the standard ``{status: false, message, data}``
envelope with the matching HTTP status code.

All of them subclass ValueError so callers that only care about "the request
was refused" can keep catching ValueError.
"""

from typing import Any, Dict, Optional


class InstituteServiceError(ValueError):
    """Base class for business-rule failures."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(InstituteServiceError):
    """Referenced row does not exist in the caller's institute."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None):
        message = f"{entity} not found"
        super().__init__(message, {"error": message, "id": entity_id} if entity_id is not None else {"error": message})


class AuthorizationError(InstituteServiceError):
    status_code = 403

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class StateConflictError(InstituteServiceError):
    """Workflow row already left the state the operation requires."""

    status_code = 409


class QuantityConflictError(InstituteServiceError):
    """Requested quantity is not available on the inventory row."""

    status_code = 400

    def __init__(self, message: str, requested: int, available: int):
        super().__init__(message, {"requested": requested, "available": available})


class BusinessRuleError(InstituteServiceError):
    status_code = 400
