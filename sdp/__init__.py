"""
Generic graph item model.

Every adapter produces ``Item`` objects; edges between items are expressed as
``LinkedItemQuery`` entries that a discovery engine can resolve later.
"""

from sdp.errors import ErrorType, QueryError
from sdp.item import (
    AdapterMetadata,
    BlastPropagation,
    Health,
    Item,
    ItemAttributes,
    LinkedItemQuery,
    Query,
    QueryMethod,
)

__all__ = [
    "AdapterMetadata",
    "BlastPropagation",
    "ErrorType",
    "Health",
    "Item",
    "ItemAttributes",
    "LinkedItemQuery",
    "Query",
    "QueryError",
    "QueryMethod",
]
