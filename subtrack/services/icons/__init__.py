"""Icon lookup services."""

from subtrack.services.icons.lookup import (
    IconLookupError,
    IconLookupService,
    IconResult,
    clean_name,
    suggest_icon_url,
)

__all__ = [
    "IconLookupError",
    "IconLookupService",
    "IconResult",
    "clean_name",
    "suggest_icon_url",
]
