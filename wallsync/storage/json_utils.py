"""JSON column codecs for tag lists and provider cursors.

Catalog rows, interactions and the sync status row keep small JSON blobs
in TEXT columns. Reads here never raise: a corrupt blob decodes to an
empty value so one bad row cannot break a listing or a sync run.
"""

import json
from typing import Any, Iterable

from wallsync.logging import get_logger

logger = get_logger(__name__)


def safe_json_dumps(data: Any, default: str = "{}") -> str:
    """Encode ``data`` compactly, or return ``default`` if it cannot be encoded."""
    if data is None:
        return default
    try:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning(f"Unencodable JSON column value: {e}")
        return default


def safe_json_loads(text: str | None, default: Any = None) -> Any:
    """Decode a JSON column, falling back to ``default`` (an empty dict if omitted)."""
    fallback = {} if default is None else default
    if not text:
        return fallback
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        logger.warning(f"Corrupt JSON column value {text[:40]!r}: {e}")
        return fallback


def dump_tags(tags: Iterable[str] | None) -> str:
    """Encode a tag list, dropping blanks and repeats while keeping order.

    Args:
        tags: Tags as reported by a provider or captured on an interaction

    Returns:
        JSON array text, ``"[]"`` when nothing usable remains
    """
    seen: dict[str, None] = {}
    for tag in tags or ():
        if isinstance(tag, str) and tag.strip():
            seen.setdefault(tag.strip(), None)
    return safe_json_dumps(list(seen), default="[]")


def load_tags(tags_json: str | None) -> list[str]:
    """Parse a stored tag list, dropping anything that is not a string."""
    data = safe_json_loads(tags_json, default=[])
    if not isinstance(data, list):
        return []
    return [tag for tag in data if isinstance(tag, str)]


def dump_cursors(cursors: dict[str, int]) -> str:
    return safe_json_dumps(dict(sorted(cursors.items())))


def load_cursors(cursors_json: str | None) -> dict[str, int]:
    """Parse stored provider page cursors.

    Entries whose page is not a positive integer are ignored, so a
    provider with a damaged cursor restarts from its first page.
    """
    data = safe_json_loads(cursors_json, default={})
    if not isinstance(data, dict):
        return {}
    return {
        name: page
        for name, page in data.items()
        if isinstance(name, str) and isinstance(page, int) and not isinstance(page, bool) and page > 0
    }
