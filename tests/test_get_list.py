"""
Tests for adapters.get_list: separate Get and List calls plus an item mapper.
"""

import sys
import os
import pytest
from unittest.mock import MagicMock

# Ensure project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from adapters import GetListAdapter, background
from sdp import ErrorType, Item, ItemAttributes, QueryError

SCOPE = "123456789012.eu-west-1"


def _mapper(scope, aws_item):
    if aws_item.get("Broken"):
        raise ValueError("cannot map")
    return Item(
        type="test-group",
        unique_attribute="Name",
        scope=scope,
        attributes=ItemAttributes({"Name": aws_item["Name"]}),
    )


def _adapter(**overrides):
    fields = dict(
        item_type="test-group",
        client=MagicMock(),
        account_id="123456789012",
        region="eu-west-1",
        get_func=lambda ctx, client, scope, query: {"Name": query},
        list_func=lambda ctx, client, scope: [{"Name": "a"}, {"Name": "b"}],
        item_mapper=_mapper,
    )
    fields.update(overrides)
    return GetListAdapter(**fields)


# =========================================================================
# Tests: Get
# =========================================================================

class TestGet:

    def test_get(self):
        item = _adapter().get(background(), SCOPE, "a")
        assert item.unique_attribute_value() == "a"

    def test_get_error_wrapped(self):
        def get_func(ctx, client, scope, query):
            raise RuntimeError("throttled")

        with pytest.raises(QueryError) as exc_info:
            _adapter(get_func=get_func).get(background(), SCOPE, "a")
        assert exc_info.value.error_type == ErrorType.OTHER
        assert exc_info.value.item_type == "test-group"

    def test_tags_added(self):
        adapter = _adapter(list_tags_func=lambda ctx, aws_item, client: {"env": "prod"})
        item = adapter.get(background(), SCOPE, "a")
        assert item.tags == {"env": "prod"}

    def test_tag_failure_degrades(self):
        def list_tags(ctx, aws_item, client):
            raise RuntimeError("AccessDenied")

        item = _adapter(list_tags_func=list_tags).get(background(), SCOPE, "a")

        assert item.unique_attribute_value() == "a"
        assert list(item.tags) == ["error"]
        assert "AccessDenied" in item.tags["error"]


# =========================================================================
# Tests: List
# =========================================================================

class TestList:

    def test_list(self):
        items = _adapter().list(background(), SCOPE)
        assert [i.unique_attribute_value() for i in items] == ["a", "b"]

    def test_mapping_failures_skipped(self):
        adapter = _adapter(
            list_func=lambda ctx, client, scope: [{"Name": "a"}, {"Broken": True}, {"Name": "c"}],
        )
        items = adapter.list(background(), SCOPE)
        assert [i.unique_attribute_value() for i in items] == ["a", "c"]

    def test_disable_list(self):
        list_func = MagicMock()
        adapter = _adapter(disable_list=True, list_func=list_func)
        assert adapter.list(background(), SCOPE) == []
        list_func.assert_not_called()

    def test_list_error_wrapped(self):
        def list_func(ctx, client, scope):
            raise RuntimeError("boom")

        with pytest.raises(QueryError) as exc_info:
            _adapter(list_func=list_func).list(background(), SCOPE)
        assert exc_info.value.error_type == ErrorType.OTHER


# =========================================================================
# Tests: Search and scopes
# =========================================================================

class TestSearch:

    def test_search_by_arn(self):
        items = _adapter().search(
            background(), SCOPE, "arn:aws:rds:eu-west-1:123456789012:pg:a",
        )
        assert [i.unique_attribute_value() for i in items] == ["a"]

    def test_search_func(self):
        adapter = _adapter(
            search_func=lambda ctx, client, scope, query: [{"Name": query + "-1"}],
        )
        items = adapter.search(background(), SCOPE, "x")
        assert [i.unique_attribute_value() for i in items] == ["x-1"]

    def test_global_resources_scope(self):
        adapter = _adapter(support_global_resources=True)
        assert adapter.scopes() == [SCOPE, "aws"]
        item = adapter.get(background(), "aws", "managed")
        assert item.scope == "aws"

    def test_validate(self):
        _adapter().validate()
        with pytest.raises(ValueError):
            _adapter(list_func=None).validate()
        _adapter(list_func=None, disable_list=True).validate()
        with pytest.raises(ValueError):
            _adapter(item_mapper=None).validate()
