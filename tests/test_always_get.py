"""
Tests for adapters.always_get: List resolves every summary with a Get.

Covers:
  - List fans out Gets on a thread pool and skips individual failures
  - TIMEOUT from a Get aborts the List
  - Get input mapper returning None makes Get unsupported
  - search_input_mapper / search_get_input_mapper / always_search_arns
  - validate() enforces the mutually exclusive search mappers
"""

import sys
import os
import threading
import time
import pytest
from unittest.mock import MagicMock

# Ensure project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from adapters import AlwaysGetAdapter, Context, TokenPaginator, background
from sdp import ErrorType, Item, ItemAttributes, QueryError

SCOPE = "123456789012.us-west-2"


def _get_func(ctx, client, scope, get_input):
    name = get_input["Name"]
    if name == "missing":
        raise QueryError(ErrorType.NOTFOUND, "gone")
    return Item(
        type="test-func",
        unique_attribute="Name",
        scope=scope,
        attributes=ItemAttributes({"Name": name}),
    )


def _client(*pages):
    client = MagicMock()
    client.list_things.side_effect = list(pages)
    return client


def _adapter(client, **overrides):
    fields = dict(
        item_type="test-func",
        client=client,
        account_id="123456789012",
        region="us-west-2",
        get_func=_get_func,
        get_input_mapper=lambda scope, query: {"Name": query},
        list_func_paginator_builder=lambda c, params: TokenPaginator(c.list_things, params),
        list_func_output_mapper=lambda output, params: [
            {"Name": n} for n in output.get("Names", [])
        ],
    )
    fields.update(overrides)
    return AlwaysGetAdapter(**fields)


# =========================================================================
# Tests: Get
# =========================================================================

class TestGet:

    def test_get(self):
        item = _adapter(MagicMock()).get(background(), SCOPE, "fn")
        assert item.unique_attribute_value() == "fn"

    def test_get_not_found_propagates(self):
        with pytest.raises(QueryError) as exc_info:
            _adapter(MagicMock()).get(background(), SCOPE, "missing")
        assert exc_info.value.error_type == ErrorType.NOTFOUND
        assert exc_info.value.scope == SCOPE

    def test_none_item_is_not_found(self):
        adapter = _adapter(MagicMock(), get_func=lambda ctx, c, scope, i: None)
        with pytest.raises(QueryError) as exc_info:
            adapter.get(background(), SCOPE, "fn")
        assert exc_info.value.error_type == ErrorType.NOTFOUND

    def test_get_unsupported(self):
        get_func = MagicMock()
        adapter = _adapter(
            MagicMock(),
            get_func=get_func,
            get_input_mapper=lambda scope, query: None,
        )
        with pytest.raises(QueryError) as exc_info:
            adapter.get(background(), SCOPE, "fn")
        assert exc_info.value.error_type == ErrorType.OTHER
        assert "use SEARCH instead" in exc_info.value.error_string
        get_func.assert_not_called()


# =========================================================================
# Tests: List
# =========================================================================

class TestList:

    def test_list_resolves_every_summary(self):
        client = _client(
            {"Names": ["a", "b"], "NextToken": "t"},
            {"Names": ["c"]},
        )
        items = _adapter(client).list(background(), SCOPE)
        assert sorted(i.unique_attribute_value() for i in items) == ["a", "b", "c"]

    def test_list_skips_failed_gets(self):
        client = _client({"Names": ["a", "missing", "b"]})
        items = _adapter(client).list(background(), SCOPE)
        assert [i.unique_attribute_value() for i in items] == ["a", "b"]

    def test_list_timeout_aborts(self):
        def get_func(ctx, c, scope, get_input):
            raise QueryError(ErrorType.TIMEOUT, "context deadline exceeded")

        client = _client({"Names": ["a"]})
        with pytest.raises(QueryError) as exc_info:
            _adapter(client, get_func=get_func).list(background(), SCOPE)
        assert exc_info.value.error_type == ErrorType.TIMEOUT

    def test_list_runs_gets_in_parallel(self):
        active = 0
        peak = 0
        lock = threading.Lock()

        def get_func(ctx, c, scope, get_input):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.05)
            with lock:
                active -= 1
            return _get_func(ctx, c, scope, get_input)

        client = _client({"Names": [str(i) for i in range(8)]})
        adapter = _adapter(client, get_func=get_func, max_parallel=3)

        items = adapter.list(background(), SCOPE)

        assert len(items) == 8
        assert 1 < peak <= 3

    def test_list_stops_when_cancelled_mid_pagination(self):
        ctx = Context()
        client = MagicMock()

        def list_things(**params):
            ctx.cancel()
            return {"Names": ["a"], "NextToken": "t"}

        client.list_things.side_effect = list_things

        with pytest.raises(QueryError) as exc_info:
            _adapter(client).list(ctx, SCOPE)

        assert exc_info.value.error_type == ErrorType.TIMEOUT
        assert client.list_things.call_count == 1

    def test_list_twice_gives_same_items(self):
        client = MagicMock()
        client.list_things.return_value = {"Names": ["a", "b"]}
        adapter = _adapter(client)

        first = adapter.list(background(), SCOPE)
        second = adapter.list(background(), SCOPE)

        assert [i.to_dict() for i in first] == [i.to_dict() for i in second]

    def test_list_input_passed_to_paginator(self):
        client = _client({"Names": []})
        adapter = _adapter(client, list_input={"MaxResults": 50})
        adapter.list(background(), SCOPE)
        client.list_things.assert_called_once_with(MaxResults=50)

    def test_disable_list(self):
        client = MagicMock()
        assert _adapter(client, disable_list=True).list(background(), SCOPE) == []
        client.list_things.assert_not_called()

    def test_default_parallelism(self):
        assert _adapter(MagicMock()).parallelism() == 10
        assert _adapter(MagicMock(), max_parallel=0).parallelism() == 10


# =========================================================================
# Tests: Search
# =========================================================================

class TestSearch:

    def test_search_by_arn(self):
        items = _adapter(MagicMock()).search(
            background(), SCOPE, "arn:aws:lambda:us-west-2:123456789012:function:fn",
        )
        assert [i.unique_attribute_value() for i in items] == ["fn"]

    def test_search_input_mapper_runs_list(self):
        client = _client({"Names": ["x", "y"]})
        adapter = _adapter(client, search_input_mapper=lambda scope, query: {"Owner": query})

        items = adapter.search(background(), SCOPE, "me")

        assert len(items) == 2
        client.list_things.assert_called_once_with(Owner="me")

    def test_search_get_input_mapper_runs_get(self):
        adapter = _adapter(
            MagicMock(),
            search_get_input_mapper=lambda scope, query: {"Name": query.upper()},
        )
        items = adapter.search(background(), SCOPE, "fn")
        assert [i.unique_attribute_value() for i in items] == ["FN"]

    def test_always_search_arns(self):
        client = MagicMock()
        adapter = _adapter(
            client,
            always_search_arns=True,
            search_input_mapper=lambda scope, query: {"Owner": query},
        )
        items = adapter.search(
            background(), SCOPE, "arn:aws:lambda:us-west-2:123456789012:function:fn",
        )
        assert [i.unique_attribute_value() for i in items] == ["fn"]
        client.list_things.assert_not_called()


# =========================================================================
# Tests: validate
# =========================================================================

class TestValidate:

    def test_valid(self):
        _adapter(MagicMock()).validate()

    def test_search_mappers_mutually_exclusive(self):
        adapter = _adapter(
            MagicMock(),
            search_input_mapper=lambda scope, query: {},
            search_get_input_mapper=lambda scope, query: {},
        )
        with pytest.raises(ValueError):
            adapter.validate()

    @pytest.mark.parametrize("missing", [
        "get_func", "get_input_mapper",
        "list_func_paginator_builder", "list_func_output_mapper",
    ])
    def test_missing_callable(self, missing):
        with pytest.raises(ValueError):
            _adapter(MagicMock(), **{missing: None}).validate()
