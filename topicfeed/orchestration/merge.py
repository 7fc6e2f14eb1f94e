"""Deterministic merge of normalized source payloads."""
import copy
import json
from typing import Any, Dict, Iterable, List, Optional


# Checked in order; the first non-empty one identifies a record item
TITLE_FIELDS = ("text", "title", "headline", "full_name", "id")


def item_identity(item: Any) -> str:
    """Key used to deduplicate list items across sources.

    Record items are identified by their first non-empty title-like field.
    Anything else (scalars, records without such a field) falls back to a
    canonical JSON encoding, so equal values collapse to one entry.

    Args:
        item: List element from a normalized payload

    Returns:
        Identity string
    """
    if isinstance(item, dict):
        for field_name in TITLE_FIELDS:
            value = item.get(field_name)
            if value not in (None, ""):
                return str(value)
    return json.dumps(item, sort_keys=True, default=str)


def _merge_lists(existing: List[Any], incoming: List[Any]) -> List[Any]:
    seen = {item_identity(item) for item in existing}
    for item in incoming:
        identity = item_identity(item)
        if identity not in seen:
            seen.add(identity)
            existing.append(item)
    return existing


def merge_results(payloads: Iterable[Optional[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    """Merge normalized payloads left to right.

    Rules per key:
    - not yet present: taken as is (containers are copied)
    - list + list: items appended unless their identity was already seen
    - record + record: shallow merge, later values overwrite
    - anything else: the first value is kept

    Presence is decided by key membership, so a falsy first value
    (0, "", []) is still the winner for scalar collisions.

    Args:
        payloads: Normalized payloads in tier then registration order

    Returns:
        Merged mapping, or None if no payload contributed
    """
    merged: Dict[str, Any] = {}
    contributed = False

    for payload in payloads:
        if not payload:
            continue
        contributed = True

        for key, value in payload.items():
            if key not in merged:
                # Cached payloads must never be mutated by later merges
                merged[key] = copy.copy(value) if isinstance(value, (list, dict)) else value
            elif isinstance(merged[key], list) and isinstance(value, list):
                _merge_lists(merged[key], value)
            elif isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key].update(value)

    return merged if contributed else None
