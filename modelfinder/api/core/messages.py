"""Message codes and the response envelope shared by JSON endpoints."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    SUCCESS = "SUCCESS"

    # Client errors
    INVALID_INPUT = "INVALID_INPUT"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    DUPLICATE_CANDIDATE_ID = "DUPLICATE_CANDIDATE_ID"
    IMAGE_PROCESSING_ERROR = "IMAGE_PROCESSING_ERROR"

    # Server errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


DEFAULT_MESSAGES = {
    MessageCode.SUCCESS: "Operation completed successfully",
    MessageCode.INVALID_INPUT: "Invalid input provided",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
    MessageCode.METHOD_NOT_ALLOWED: "Method not allowed",
    MessageCode.REQUEST_TOO_LARGE: "Request size exceeds the allowed maximum",
    MessageCode.DUPLICATE_CANDIDATE_ID: "Candidate ids must be unique",
    MessageCode.IMAGE_PROCESSING_ERROR: "Image could not be decoded",
    MessageCode.INTERNAL_SERVER_ERROR: "Internal server error",
}

# Used when an HTTPException carries no message code of its own
STATUS_MESSAGE_CODES = {
    400: MessageCode.BAD_REQUEST,
    404: MessageCode.NOT_FOUND,
    405: MessageCode.METHOD_NOT_ALLOWED,
    413: MessageCode.REQUEST_TOO_LARGE,
    422: MessageCode.INVALID_INPUT,
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Envelope for JSON responses: a message code, a message and the payload."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        data: T | None = None,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
    ) -> "APIResponse[T]":
        return cls(
            message_code=message_code,
            message=message or get_default_message(message_code),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")


def message_code_for_status(status_code: int) -> MessageCode:
    if status_code >= 500:
        return MessageCode.INTERNAL_SERVER_ERROR
    return STATUS_MESSAGE_CODES.get(status_code, MessageCode.BAD_REQUEST)
