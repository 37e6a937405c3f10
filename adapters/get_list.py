"""
Get-List adapters.

For resources where Get and List are distinct API calls that may return
different shapes.  The resource module supplies ``get_func`` and
``list_func`` returning raw AWS structures plus an ``item_mapper``; the
engine handles scopes, tag merging, validation and search.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from adapters.base import Adapter
from adapters.context import Context
from adapters.errors import handle_tags_error
from sdp import Item

logger = logging.getLogger(__name__)

# Scope served by adapters for account-independent resources (e.g. AWS
# managed policies).
AWS_GLOBAL_SCOPE = "aws"


@dataclass
class GetListAdapter(Adapter):
    support_global_resources: bool = False
    disable_list: bool = False

    # (ctx, client, scope, query) -> aws item
    get_func: Optional[Callable[[Context, Any, str, str], Any]] = None
    # (ctx, client, scope) -> [aws item]
    list_func: Optional[Callable[[Context, Any, str], list]] = None
    # (ctx, client, scope, query) -> [aws item]; replaces the ARN search
    search_func: Optional[Callable[[Context, Any, str, str], list]] = None
    # (ctx, aws item, client) -> tags
    list_tags_func: Optional[Callable[[Context, Any, Any], dict]] = None
    # (scope, aws item) -> Item
    item_mapper: Optional[Callable[[str, Any], Item]] = None

    def validate(self) -> None:
        super().validate()
        if self.get_func is None:
            raise ValueError(f"{self.name()}: get_func is None")
        if not self.disable_list and self.list_func is None:
            raise ValueError(f"{self.name()}: list_func is None")
        if self.item_mapper is None:
            raise ValueError(f"{self.name()}: item_mapper is None")

    def scopes(self) -> list[str]:
        scopes = super().scopes()
        if self.support_global_resources:
            scopes.append(AWS_GLOBAL_SCOPE)
        return scopes

    def get(self, ctx: Context, scope: str, query: str) -> Item:
        self._check_scope(scope)

        self._wait(ctx, scope)
        try:
            aws_item = self.get_func(ctx, self.client, scope, query)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        try:
            item = self.item_mapper(scope, aws_item)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        self._add_tags(ctx, scope, item, aws_item)
        return self._validate_item(item, scope)

    def list(self, ctx: Context, scope: str) -> list[Item]:
        self._check_scope(scope)

        if self.disable_list:
            return []

        self._wait(ctx, scope)
        try:
            aws_items = self.list_func(ctx, self.client, scope)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        return self._map_all(ctx, scope, aws_items)

    def search(self, ctx: Context, scope: str, query: str) -> list[Item]:
        self._check_scope(scope)

        if self.search_func is None:
            resource_id = self._resource_id_from_arn(scope, query)
            return [self.get(ctx, scope, resource_id)]

        self._wait(ctx, scope)
        try:
            aws_items = self.search_func(ctx, self.client, scope, query)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        return self._map_all(ctx, scope, aws_items)

    # ------------------------------------------------------------------

    def _map_all(self, ctx: Context, scope: str, aws_items: list) -> list[Item]:
        items: list[Item] = []
        for aws_item in aws_items:
            ctx.raise_if_cancelled(scope)
            try:
                item = self.item_mapper(scope, aws_item)
                item.validate()
            except Exception as exc:
                logger.warning("Skipping %s in %s: %s", self.item_type, scope, exc)
                continue

            self._add_tags(ctx, scope, item, aws_item)
            items.append(item)
        return items

    def _add_tags(self, ctx: Context, scope: str, item: Item, aws_item: Any) -> None:
        if self.list_tags_func is None:
            return

        self._wait(ctx, scope)
        try:
            item.tags = self.list_tags_func(ctx, aws_item, self.client) or {}
        except Exception as exc:
            item.tags = handle_tags_error(exc)
