"""
Tests for adapters.arn: ARN parsing and scope formatting.

Covers:
  - resource_type / resource_id splitting on ':' and '/'
  - scope derivation for regional and global ARNs
  - malformed ARNs raise ValueError
  - format_scope / parse_scope
"""

import sys
import os
import pytest

# Ensure project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from adapters.arn import GLOBAL_SCOPE, format_scope, parse_arn, parse_scope


# =========================================================================
# Tests: parse_arn
# =========================================================================

class TestParseArn:

    def test_kms_key(self):
        arn = parse_arn("arn:aws:kms:eu-west-2:052392120703:key/abc")
        assert arn.partition == "aws"
        assert arn.service == "kms"
        assert arn.region == "eu-west-2"
        assert arn.account_id == "052392120703"
        assert arn.resource == "key/abc"
        assert arn.resource_type == "key"
        assert arn.resource_id == "abc"
        assert arn.scope == "052392120703.eu-west-2"

    def test_colon_separated_resource_keeps_version(self):
        arn = parse_arn("arn:aws:lambda:us-east-1:123456789012:layer:my-layer:3")
        assert arn.resource_type == "layer"
        assert arn.resource_id == "my-layer:3"

    def test_global_service_has_account_scope(self):
        arn = parse_arn("arn:aws:iam::123456789012:role/admin")
        assert arn.region == ""
        assert arn.scope == "123456789012"
        assert arn.resource_id == "admin"

    def test_resource_without_type(self):
        arn = parse_arn("arn:aws:sqs:us-east-1:123456789012:my-queue")
        assert arn.resource_type == ""
        assert arn.resource_id == "my-queue"

    def test_resource_id_with_slashes(self):
        arn = parse_arn(
            "arn:aws:dynamodb:eu-west-1:123456789012:table/orders/backup/01234-abc"
        )
        assert arn.resource_type == "table"
        assert arn.resource_id == "orders/backup/01234-abc"

    def test_str_round_trips(self):
        raw = "arn:aws:ec2:us-east-1:123456789012:instance/i-0abc"
        assert str(parse_arn(raw)) == raw

    @pytest.mark.parametrize("value", [
        "",
        "not-an-arn",
        "arn:aws:kms",
        "urn:aws:kms:eu-west-2:1:key/abc",
        "arn::kms:eu-west-2:1:key/abc",
        "arn:aws:kms:eu-west-2:1:",
    ])
    def test_malformed_raises_value_error(self, value):
        with pytest.raises(ValueError):
            parse_arn(value)

    def test_non_string_raises_value_error(self):
        with pytest.raises(ValueError):
            parse_arn(None)


# =========================================================================
# Tests: scopes
# =========================================================================

class TestScopes:

    def test_format_regional(self):
        assert format_scope("123", "eu-west-1") == "123.eu-west-1"

    def test_format_account_only(self):
        assert format_scope("123", "") == "123"

    def test_parse_regional(self):
        assert parse_scope("123.eu-west-1") == ("123", "eu-west-1")

    def test_parse_account_only(self):
        assert parse_scope("123") == ("123", "")

    def test_parse_too_many_dots(self):
        with pytest.raises(ValueError):
            parse_scope("a.b.c")

    def test_parse_empty(self):
        with pytest.raises(ValueError):
            parse_scope("")

    def test_global_scope_literal(self):
        assert GLOBAL_SCOPE == "global"
