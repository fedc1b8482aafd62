# Copyright (c) 2026 Heureum AI. All rights reserved.

"""Shared models for the compaction safeguard."""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MessageRole(str, Enum):
    """Message role enumeration.

    Attributes:
        USER (str): User role.
        ASSISTANT (str): Assistant role.
        TOOL_RESULT (str): Result of a tool invocation.
        SYSTEM (str): System role.
    """

    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "toolResult"
    SYSTEM = "system"


class _CamelModel(BaseModel):
    """Accepts both snake_case and the camelCase keys written by the session log."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextContent(_CamelModel):
    """Text content block.

    Attributes:
        type (Literal["text"]): Content type discriminator.
        text (str): The text payload.
    """

    type: Literal["text"] = "text"
    text: str


class ImageContent(_CamelModel):
    """Image content block. Contributes nothing to text-based estimates.

    Attributes:
        type (Literal["image"]): Content type discriminator.
        data (str): Base64-encoded image payload.
        mime_type (str): MIME type of the image.
    """

    type: Literal["image"] = "image"
    data: str = ""
    mime_type: str = "image/png"


ContentBlock = Annotated[Union[TextContent, ImageContent], Field(discriminator="type")]
MessageContent = Union[str, List[ContentBlock]]


class Message(_CamelModel):
    """One turn in the conversation.

    Attributes:
        role (MessageRole): The role of the message sender.
        content (MessageContent): Plain string or ordered content blocks.
        timestamp (Optional[int]): Epoch milliseconds, if known.
        tool_call_id (Optional[str]): Invocation identifier (tool results only).
        tool_name (Optional[str]): Name of the invoked tool (tool results only).
        is_error (bool): Whether the tool invocation failed.
        details (Optional[Dict[str, Any]]): Free-form tool metadata such as
            ``status`` or ``exitCode``.
    """

    role: MessageRole
    content: MessageContent = ""
    timestamp: Optional[int] = None
    tool_call_id: Optional[str] = None
    tool_name: Optional[str] = None
    is_error: bool = False
    details: Optional[Dict[str, Any]] = None


class ToolFailure(BaseModel):
    """A failed tool invocation that must survive compaction.

    Attributes:
        tool_call_id (str): Invocation identifier, used for deduplication.
        tool_name (str): Name of the tool that failed.
        meta (str): Rendered ``key=value`` details, empty when none.
        message (str): Normalized failure text.
    """

    model_config = ConfigDict(frozen=True)

    tool_call_id: str
    tool_name: str
    meta: str = ""
    message: str
