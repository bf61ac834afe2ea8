"""Display helpers for CLI tables."""

from __future__ import annotations

from datetime import datetime

from vectordesk.models import DocumentStatus


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_date(value: str) -> str:
    """ISO timestamp → 'Jan 5, 2025'. Unparsable input is returned as is."""
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return value
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def format_status(status: DocumentStatus) -> str:
    colour = {
        DocumentStatus.PROCESSING: "yellow",
        DocumentStatus.COMPLETED: "green",
        DocumentStatus.ERROR: "red",
    }[status]
    return f"[{colour}]{status.value}[/]"
