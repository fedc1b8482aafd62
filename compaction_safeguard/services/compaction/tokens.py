# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Token estimation utilities.

Character heuristic: four characters are roughly one token.  Only text
contributes; image blocks count as zero so estimates stay deterministic.
"""

from __future__ import annotations

import math
from typing import Iterable, List

from compaction_safeguard.models import Message, MessageContent, TextContent
from compaction_safeguard.services.compaction.settings import CHARS_PER_TOKEN


def estimate_tokens(text: str) -> int:
    """Estimate token count using the character heuristic.

    Args:
        text (str): Text to estimate tokens for.

    Returns:
        int: ``ceil(len(text) / CHARS_PER_TOKEN)``; 0 for empty text.
    """
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def _text_blocks(content: MessageContent) -> List[str]:
    if isinstance(content, str):
        return [content]
    return [block.text for block in content if isinstance(block, TextContent)]


def extract_text(content: MessageContent) -> str:
    """Join the text-bearing parts of message content.

    Args:
        content (MessageContent): Plain string or content blocks.

    Returns:
        str: Text blocks joined by newlines; non-text blocks are skipped.
    """
    return "\n".join(_text_blocks(content))


def estimate_content_tokens(content: MessageContent) -> int:
    """Estimate tokens for message content, block by block.

    Args:
        content (MessageContent): Plain string or content blocks.

    Returns:
        int: Sum of per-text-block estimates.
    """
    return sum(estimate_tokens(text) for text in _text_blocks(content))


def estimate_message_tokens(msg: Message) -> int:
    """Estimate token count for a single message.

    Args:
        msg (Message): Message to estimate tokens for.

    Returns:
        int: Estimated token count of the message content.
    """
    return estimate_content_tokens(msg.content)


def estimate_messages_tokens(messages: Iterable[Message]) -> int:
    """Estimate total token count for a list of messages.

    Args:
        messages (Iterable[Message]): Messages to estimate tokens for.

    Returns:
        int: Sum of estimated token counts across all messages.
    """
    return sum(estimate_message_tokens(m) for m in messages)
