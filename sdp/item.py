"""
Item, linked-query and metadata structures.

Items are built fresh for every query and are not mutated once an adapter
returns them.  ``to_dict()`` gives the JSON-ready form used by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class QueryMethod(str, Enum):
    GET = "GET"
    LIST = "LIST"
    SEARCH = "SEARCH"


class Health(str, Enum):
    OK = "OK"
    PENDING = "PENDING"
    WARNING = "WARNING"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------

class ItemAttributes:
    """Ordered, string-keyed attribute bag.

    Values are JSON-like: scalars, lists, or nested dicts.  Keys keep the
    order they were inserted in (the attribute mapper inserts them sorted).
    """

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})

    def set(self, key: str, value: Any) -> None:
        """Inject or overwrite a top-level attribute."""
        if not key:
            raise ValueError("attribute name must not be empty")
        self._values[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Return a top-level attribute.  Dotted keys walk nested dicts."""
        if key in self._values:
            return self._values[key]

        current: Any = self._values
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ItemAttributes):
            return self._values == other._values
        return NotImplemented

    def __repr__(self) -> str:
        return f"ItemAttributes({self._values!r})"


# ---------------------------------------------------------------------------
# Edges
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BlastPropagation:
    """Directional change-impact flags on an edge.

    ``in_``: a change to the target can affect this item.
    ``out``: a change to this item can affect the target.
    """

    in_: bool = False
    out: bool = False

    def to_dict(self) -> dict:
        return {"in": self.in_, "out": self.out}


@dataclass(frozen=True)
class Query:
    type: str
    method: QueryMethod
    query: str
    scope: str

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "method": self.method.value,
            "query": self.query,
            "scope": self.scope,
        }


@dataclass(frozen=True)
class LinkedItemQuery:
    query: Query
    blast_propagation: BlastPropagation | None = None

    def to_dict(self) -> dict:
        return {
            "query": self.query.to_dict(),
            "blast_propagation": (
                self.blast_propagation.to_dict() if self.blast_propagation else None
            ),
        }


# ---------------------------------------------------------------------------
# Item
# ---------------------------------------------------------------------------

@dataclass
class Item:
    type: str
    unique_attribute: str
    scope: str
    attributes: ItemAttributes
    tags: dict[str, str] = field(default_factory=dict)
    health: Health | None = None
    linked_item_queries: list[LinkedItemQuery] = field(default_factory=list)

    def link(
        self,
        item_type: str,
        method: QueryMethod,
        query: str,
        scope: str,
        in_: bool = False,
        out: bool = False,
    ) -> None:
        """Append a linked item query."""
        self.linked_item_queries.append(LinkedItemQuery(
            query=Query(type=item_type, method=method, query=query, scope=scope),
            blast_propagation=BlastPropagation(in_=in_, out=out),
        ))

    def unique_attribute_value(self) -> str:
        value = self.attributes.get(self.unique_attribute)
        if value is None:
            return ""
        return str(value)

    def globally_unique_name(self) -> str:
        return f"{self.scope}.{self.type}.{self.unique_attribute_value()}"

    def validate(self) -> None:
        """Raise ValueError if the item is not fit to be returned."""
        if not self.type:
            raise ValueError("item has an empty type")
        if not self.unique_attribute:
            raise ValueError(f"{self.type} item has an empty unique attribute")
        if not self.scope:
            raise ValueError(f"{self.type} item has an empty scope")
        if self.attributes is None:
            raise ValueError(f"{self.type} item has no attributes")
        if not self.unique_attribute_value():
            raise ValueError(
                f"{self.type} item has no value for unique attribute "
                f"{self.unique_attribute}"
            )

        for lq in self.linked_item_queries:
            q = lq.query
            if not q.type:
                raise ValueError(f"{self.globally_unique_name()} has a linked query with no type")
            if not q.scope:
                raise ValueError(f"{self.globally_unique_name()} has a linked query with no scope")
            if q.method != QueryMethod.LIST and not q.query:
                raise ValueError(
                    f"{self.globally_unique_name()} has a {q.method.value} "
                    f"linked query with no query"
                )

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "unique_attribute": self.unique_attribute,
            "scope": self.scope,
            "attributes": self.attributes.to_dict(),
            "tags": dict(self.tags),
            "health": self.health.value if self.health else None,
            "linked_item_queries": [lq.to_dict() for lq in self.linked_item_queries],
        }


# ---------------------------------------------------------------------------
# Adapter metadata
# ---------------------------------------------------------------------------

@dataclass
class AdapterMetadata:
    """Static description of what an adapter can do and link to."""

    type: str
    descriptive_name: str
    supports_get: bool = True
    supports_list: bool = True
    supports_search: bool = True
    get_description: str = ""
    list_description: str = ""
    search_description: str = ""
    category: str = ""
    potential_links: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "descriptive_name": self.descriptive_name,
            "supported_query_methods": {
                "get": self.supports_get,
                "list": self.supports_list,
                "search": self.supports_search,
                "get_description": self.get_description,
                "list_description": self.list_description,
                "search_description": self.search_description,
            },
            "category": self.category,
            "potential_links": sorted(self.potential_links),
        }
