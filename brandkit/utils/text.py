"""String cleanup helpers for language model output."""

import html


def clean_text(value: object) -> str:
    """Trim a value and decode HTML entities; non-strings become empty."""
    if not isinstance(value, str):
        return ""
    return html.unescape(value.strip())


def clean_optional(value: object) -> str | None:
    """Like clean_text, but empty results become None."""
    cleaned = clean_text(value)
    return cleaned or None


def clean_list(values: object) -> list[str]:
    """Clean each string in a list and drop the empty ones."""
    if not isinstance(values, list):
        return []
    return [item for item in (clean_text(v) for v in values) if item]
