"""
Decoding of JSON-encoded auxiliary columns.
"""
import json
import logging
from typing import Any, List, Optional, Tuple

logger = logging.getLogger(__name__)


def parse_or_default(raw: Optional[str], default: Any = None, field_name: str = "field") -> Tuple[Any, bool]:
    """
    Decode a JSON column, falling back to a default on missing or malformed data.

    Args:
        raw: Stored JSON text (may be None or empty)
        default: Value returned when raw cannot be used (a new list when None)
        field_name: Column name used in the warning

    Returns:
        Tuple of (value, was_valid). An absent value counts as valid.
    """
    if default is None:
        default = []

    if raw is None or raw == "":
        return default, True

    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Malformed JSON stored in {field_name}, using default")
        return default, False

    if not isinstance(value, type(default)):
        logger.warning(f"Unexpected JSON type stored in {field_name}, using default")
        return default, False

    return value, True


def parse_list(raw: Optional[str], field_name: str = "field") -> List[Any]:
    """Decode a JSON list column, returning [] for anything unusable."""
    value, _ = parse_or_default(raw, [], field_name)
    return value


def dump_list(values: List[Any]) -> str:
    return json.dumps(values)
