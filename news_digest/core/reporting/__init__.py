"""
news_digest/core/reporting

Digest grouping and rendering shared by the pipeline worker and the archive export.
"""
from .formatters import (
    DIGEST_TITLE,
    MAX_MESSAGE_CHARS,
    group_by_city,
    render_digest_message,
    render_digest_text,
    roc_date,
    roc_timestamp,
)

__all__ = [
    "DIGEST_TITLE",
    "MAX_MESSAGE_CHARS",
    "group_by_city",
    "render_digest_message",
    "render_digest_text",
    "roc_date",
    "roc_timestamp",
]
