"""
Always-Get adapters.

For APIs whose List response is too sparse to build a complete item
(CloudFront, DynamoDB, Lambda, Network Firewall ...).  List pages through
the identifiers, projects each summary into a Get input, and resolves every
one with ``get_func`` on a bounded thread pool.  A List of n resources
therefore costs n extra API calls.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from adapters.arn import parse_arn
from adapters.base import Adapter
from adapters.context import Context
from adapters.paginator import Paginator
from sdp import ErrorType, Item, QueryError

logger = logging.getLogger(__name__)

DEFAULT_MAX_PARALLEL = 10


@dataclass
class AlwaysGetAdapter(Adapter):
    max_parallel: int = DEFAULT_MAX_PARALLEL
    disable_list: bool = False
    always_search_arns: bool = False

    list_input: dict = field(default_factory=dict)

    # (ctx, client, scope, get input) -> Item
    get_func: Optional[Callable[[Context, Any, str, dict], Item]] = None
    # (scope, query) -> get input, or None when Get is not supported
    get_input_mapper: Optional[Callable[[str, str], Optional[dict]]] = None
    # (client, list input) -> Paginator
    list_func_paginator_builder: Optional[Callable[[Any, dict], Paginator]] = None
    # (list output, list input) -> [get input]
    list_func_output_mapper: Optional[Callable[[dict, dict], list]] = None
    # (scope, query) -> list input; search runs a List with this input
    search_input_mapper: Optional[Callable[[str, str], dict]] = None
    # (scope, query) -> get input; search runs a single Get with this input
    search_get_input_mapper: Optional[Callable[[str, str], dict]] = None

    def validate(self) -> None:
        super().validate()
        if self.list_func_paginator_builder is None:
            raise ValueError(f"{self.name()}: list_func_paginator_builder is None")
        if self.list_func_output_mapper is None:
            raise ValueError(f"{self.name()}: list_func_output_mapper is None")
        if self.get_func is None:
            raise ValueError(f"{self.name()}: get_func is None")
        if self.get_input_mapper is None:
            raise ValueError(f"{self.name()}: get_input_mapper is None")
        if self.search_input_mapper is not None and self.search_get_input_mapper is not None:
            raise ValueError(
                f"{self.name()}: search_input_mapper and search_get_input_mapper "
                f"are mutually exclusive"
            )

    def parallelism(self) -> int:
        return self.max_parallel if self.max_parallel > 0 else DEFAULT_MAX_PARALLEL

    # ------------------------------------------------------------------
    # Get
    # ------------------------------------------------------------------

    def get(self, ctx: Context, scope: str, query: str) -> Item:
        self._check_scope(scope)

        try:
            get_input = self.get_input_mapper(scope, query)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        if get_input is None:
            raise self._error(QueryError(
                ErrorType.OTHER,
                f"GET is not supported for {self.item_type}, use SEARCH instead",
            ), scope)

        return self._get(ctx, scope, get_input)

    def _get(self, ctx: Context, scope: str, get_input: dict) -> Item:
        self._wait(ctx, scope)
        try:
            item = self.get_func(ctx, self.client, scope, get_input)
        except Exception as exc:
            raise self._error(exc, scope) from exc

        if item is None:
            raise self._error(QueryError(
                ErrorType.NOTFOUND, f"{self.item_type} not found",
            ), scope)
        return self._validate_item(item, scope)

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def list(self, ctx: Context, scope: str) -> list[Item]:
        self._check_scope(scope)

        if self.disable_list:
            return []

        return self._list(ctx, scope, self.list_input)

    def _list(self, ctx: Context, scope: str, list_input: dict) -> list[Item]:
        paginator = self.list_func_paginator_builder(self.client, list_input)
        items: list[Item] = []

        with ThreadPoolExecutor(
            max_workers=self.parallelism(),
            thread_name_prefix=self.item_type,
        ) as pool:
            futures = []
            try:
                while paginator.has_more_pages():
                    self._wait(ctx, scope)
                    try:
                        output = paginator.next_page(ctx)
                        get_inputs = self.list_func_output_mapper(output, list_input)
                    except Exception as exc:
                        raise self._error(exc, scope) from exc

                    for get_input in get_inputs:
                        futures.append(
                            (get_input, pool.submit(self._get, ctx, scope, get_input))
                        )
            except QueryError:
                for _, future in futures:
                    future.cancel()
                raise

            for get_input, future in futures:
                try:
                    items.append(future.result())
                except QueryError as exc:
                    if exc.error_type == ErrorType.TIMEOUT:
                        raise
                    logger.error(
                        "Error running Get for List item %s in %s: %s",
                        get_input, scope, exc,
                    )

        return items

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, ctx: Context, scope: str, query: str) -> list[Item]:
        self._check_scope(scope)

        if self.search_input_mapper is None and self.search_get_input_mapper is None:
            return self._search_arn(ctx, scope, query)

        if self.always_search_arns and _is_arn(query):
            return self._search_arn(ctx, scope, query)

        return self._search_custom(ctx, scope, query)

    def _search_arn(self, ctx: Context, scope: str, query: str) -> list[Item]:
        resource_id = self._resource_id_from_arn(scope, query)
        return [self.get(ctx, scope, resource_id)]

    def _search_custom(self, ctx: Context, scope: str, query: str) -> list[Item]:
        if self.search_input_mapper is not None:
            try:
                list_input = self.search_input_mapper(scope, query)
            except Exception as exc:
                raise self._error(exc, scope) from exc
            return self._list(ctx, scope, list_input)

        try:
            get_input = self.search_get_input_mapper(scope, query)
        except Exception as exc:
            raise self._error(exc, scope) from exc
        return [self._get(ctx, scope, get_input)]


def _is_arn(value: str) -> bool:
    try:
        parse_arn(value)
    except ValueError:
        return False
    return True
