from __future__ import annotations


class NotificationError(Exception):
    """A notification channel could not deliver a message."""


def split_message(message: str, max_length: int) -> list[str]:
    """Split text into parts of at most ``max_length`` characters.

    Prefers a sentence boundary (". "), then a word boundary; a boundary is
    only used when it falls past half the limit, otherwise the text is cut
    hard at the limit. Parts are stripped of surrounding whitespace.
    """
    if max_length <= 0:
        raise ValueError("max_length must be positive")

    parts: list[str] = []
    remaining = message

    while remaining:
        if len(remaining) <= max_length:
            parts.append(remaining)
            break

        # Cut just after the period so the part keeps it
        cut = remaining.rfind(". ", 0, max_length) + 1
        if cut <= max_length // 2:
            # Cut at the space itself; strip() removes it
            cut = remaining.rfind(" ", 0, max_length + 1)
        if cut <= max_length // 2:
            cut = max_length

        part = remaining[:cut].strip()
        if part:
            parts.append(part)
        remaining = remaining[cut:].strip()

    return parts
