"""Domain errors raised by crud/utils code and mapped to HTTP responses in main.py."""
from typing import Dict, List, Optional, Union


class OrderError(Exception):
    """Base class for every error the API turns into a client response."""

    status_code = 400
    default_message = "Request could not be processed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(OrderError):
    """Field-level validation failure; ``errors`` maps field name -> messages."""

    status_code = 422
    default_message = "The given data was invalid."

    def __init__(self, errors: Dict[str, Union[str, List[str]]], message: Optional[str] = None):
        self.errors = {
            field: [messages] if isinstance(messages, str) else list(messages)
            for field, messages in errors.items()
        }
        super().__init__(message)


class InvalidTransition(ValidationFailed):
    """A status change or edit that the order's current status does not allow."""

    def __init__(self, action: str, current_status: str, message: Optional[str] = None, subject: str = "an order"):
        self.action = action
        self.current_status = current_status
        message = message or f"Cannot {action} {subject} with status '{current_status}'."
        super().__init__({"status": [message]}, message)


class NotFound(OrderError):
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class Forbidden(OrderError):
    status_code = 403
    default_message = "Forbidden"


class ReferenceConflict(OrderError):
    status_code = 409
    default_message = "Could not allocate a unique reference number, please retry."
