"""Text sanitization for user-supplied free text (reviews, notes, reasons)."""

import html


def sanitize_text(value: str | None) -> str | None:
    """Trim and HTML-escape free text so it is safe to render in the client.

    Blank input collapses to None.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return html.escape(value, quote=True)
