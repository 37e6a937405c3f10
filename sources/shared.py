"""
Helpers shared by the resource mappers.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from adapters.arn import parse_arn
from sdp import Item, QueryMethod

logger = logging.getLogger(__name__)


def tags_to_map(tags: Optional[Iterable[dict]]) -> dict[str, str]:
    """Convert AWS ``[{"Key": k, "Value": v}, ...]`` tag lists to a dict."""
    result: dict[str, str] = {}
    for tag in tags or []:
        key = tag.get("Key")
        if key is None:
            continue
        result[key] = tag.get("Value", "")
    return result


def link_arn(
    item: Item,
    item_type: str,
    arn: Optional[str],
    method: QueryMethod = QueryMethod.SEARCH,
    in_: bool = True,
    out: bool = False,
) -> bool:
    """Link *item* to the resource named by *arn*, in the ARN's own scope.

    Returns False (and adds nothing) when *arn* is empty or not an ARN.
    """
    if not arn:
        return False

    try:
        parsed = parse_arn(arn)
    except ValueError:
        logger.debug("Not linking %s from %s: %r is not an ARN", item_type, item.type, arn)
        return False

    item.link(item_type, method, arn, parsed.scope, in_=in_, out=out)
    return True


def dig(value: Any, *path: str) -> Any:
    """Walk nested dicts, returning None as soon as a key is missing."""
    current = value
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current
