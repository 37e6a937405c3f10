"""
Describe-Only adapters.

For APIs where one call (``describe_*``) returns every matching resource.
Get is a List with a single-ID filter built by ``input_mapper_get``; List
sends the same call without a filter.  ``paginator_builder`` turns the List
(and custom Search) call into a paginated loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from adapters.base import Adapter
from adapters.context import Context
from adapters.paginator import Paginator
from sdp import ErrorType, Item, QueryError

logger = logging.getLogger(__name__)


@dataclass
class DescribeOnlyAdapter(Adapter):
    # (client, input) -> output
    describe_func: Optional[Callable[[Any, dict], dict]] = None
    # (scope, query) -> input
    input_mapper_get: Optional[Callable[[str, str], dict]] = None
    # (scope) -> input
    input_mapper_list: Optional[Callable[[str], dict]] = None
    # (ctx, client, scope, query) -> input; replaces the ARN search
    input_mapper_search: Optional[Callable[[Context, Any, str, str], dict]] = None
    # (client, input) -> Paginator
    paginator_builder: Optional[Callable[[Any, dict], Paginator]] = None
    # (ctx, client, scope, input, output) -> [Item]
    output_mapper: Optional[Callable[[Context, Any, str, dict, dict], list[Item]]] = None

    def validate(self) -> None:
        super().validate()
        if self.describe_func is None:
            raise ValueError(f"{self.name()}: describe_func is None")
        if self.input_mapper_get is None:
            raise ValueError(f"{self.name()}: input_mapper_get is None")
        if self.input_mapper_list is None:
            raise ValueError(f"{self.name()}: input_mapper_list is None")
        if self.output_mapper is None:
            raise ValueError(f"{self.name()}: output_mapper is None")

    def paginated(self) -> bool:
        return self.paginator_builder is not None

    # ------------------------------------------------------------------
    # Get
    # ------------------------------------------------------------------

    def get(self, ctx: Context, scope: str, query: str) -> Item:
        self._check_scope(scope)

        try:
            params = self.input_mapper_get(scope, query)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        self._wait(ctx, scope)
        try:
            output = self.describe_func(self.client, params)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        items = self._map(ctx, scope, params, output)

        if len(items) > 1:
            names = ", ".join(i.globally_unique_name() for i in items)
            raise self._error(QueryError(
                ErrorType.OTHER,
                f"request returned > 1 item for a GET request. Items: {names}",
            ), scope)
        if not items:
            raise self._error(QueryError(
                ErrorType.NOTFOUND,
                f"{self.item_type} {query} not found",
            ), scope)

        return self._validate_item(items[0], scope)

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def list(self, ctx: Context, scope: str) -> list[Item]:
        self._check_scope(scope)

        try:
            params = self.input_mapper_list(scope)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        return self._describe_all(ctx, scope, params)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, ctx: Context, scope: str, query: str) -> list[Item]:
        self._check_scope(scope)

        if self.input_mapper_search is None:
            resource_id = self._resource_id_from_arn(scope, query)
            return [self.get(ctx, scope, resource_id)]

        try:
            params = self.input_mapper_search(ctx, self.client, scope, query)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        return self._describe_all(ctx, scope, params)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _describe_all(self, ctx: Context, scope: str, params: dict) -> list[Item]:
        if not self.paginated():
            self._wait(ctx, scope)
            try:
                output = self.describe_func(self.client, params)
            except Exception as exc:
                raise self._error(exc, scope) from exc
            return [self._validate_item(i, scope) for i in self._map(ctx, scope, params, output)]

        items: list[Item] = []
        paginator = self.paginator_builder(self.client, params)
        while paginator.has_more_pages():
            self._wait(ctx, scope)
            try:
                output = paginator.next_page(ctx)
            except Exception as exc:
                raise self._error(exc, scope) from exc
            items.extend(self._map(ctx, scope, params, output))

        return [self._validate_item(i, scope) for i in items]

    def _map(self, ctx: Context, scope: str, params: dict, output: dict) -> list[Item]:
        try:
            return list(self.output_mapper(ctx, self.client, scope, params, output))
        except Exception as exc:
            raise self._error(exc, scope) from exc
