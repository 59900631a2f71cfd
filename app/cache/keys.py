"""
Cache key derivation from request parameters.
"""
from typing import Any, Dict, Optional

KEY_SEPARATOR = "|"


def _format_value(value: Any) -> str:
    # Match query-string rendering of booleans
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def generate_cache_key(prefix: str, params: Optional[Dict[str, Any]] = None) -> str:
    """
    Build a cache key from a prefix and a parameter mapping.

    None and empty-string values are dropped and the remaining pairs are
    sorted by name, so the key does not depend on insertion order.

    Example:
        generate_cache_key("rotation", {"limit": 4, "q": None}) == "rotation|limit:4"
    """
    pairs = sorted(
        ((key, value) for key, value in (params or {}).items()
         if value is not None and value != ""),
        key=lambda pair: pair[0],
    )
    encoded = KEY_SEPARATOR.join(f"{key}:{_format_value(value)}" for key, value in pairs)
    return f"{prefix}{KEY_SEPARATOR}{encoded}"
