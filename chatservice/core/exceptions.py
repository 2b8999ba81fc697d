"""Error taxonomy for the chat service.

Every error carries an `error_code`; the HTTP layer maps codes to status
codes, the core never deals with HTTP.
"""
from typing import Any, Dict, Optional


class ChatServiceError(Exception):
    """Base exception for the chat service."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentError(ChatServiceError):
    """Raised when input is malformed. Always detected before any I/O."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_ARGUMENT", details)


class InvalidUsernameError(InvalidArgumentError):
    """Raised when a username contains the conversation id separator."""


class InvalidCursorError(ChatServiceError):
    """Raised when a continuation token was not issued for this query."""

    def __init__(self, cursor: str):
        super().__init__(
            f"Continuation token {cursor!r} is invalid.",
            "INVALID_CURSOR",
            {"continuation_token": cursor},
        )


class NotFoundError(ChatServiceError):
    """Raised when a resource is not found."""

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, "NOT_FOUND", {"resource": resource, "identifier": identifier})


class UserNotFoundError(NotFoundError):
    def __init__(self, username: str):
        super().__init__("User", username)


class ConversationNotFoundError(NotFoundError):
    def __init__(self, conversation_id: str):
        super().__init__("Conversation", conversation_id)


class MessageNotFoundError(NotFoundError):
    def __init__(self, conversation_id: str, message_id: str):
        super().__init__("Message", f"{conversation_id}/{message_id}")


class ConflictError(ChatServiceError):
    """Raised when there's a conflict with existing data."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFLICT", details)


class MessageExistsError(ConflictError):
    def __init__(self, conversation_id: str, message_id: str):
        super().__init__(
            f"A message with id {message_id} already exists in conversation {conversation_id}.",
            {"conversation_id": conversation_id, "message_id": message_id},
        )


class ProfileExistsError(ConflictError):
    def __init__(self, username: str):
        super().__init__(
            f"A profile with username {username} already exists.",
            {"username": username},
        )


class ForbiddenError(ChatServiceError):
    """Raised when a user acts on a conversation they do not take part in."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "FORBIDDEN", details)


class ServiceUnavailableError(ChatServiceError):
    """Raised when the document store cannot be reached."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SERVICE_UNAVAILABLE", details)
