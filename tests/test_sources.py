"""
Tests for sources: building every adapter from a boto3 session.
"""

import sys
import os
from unittest.mock import MagicMock

# Ensure project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from adapters import Context
from sources import all_metadata, build_adapters, find_adapters


def _build(regions, **kwargs):
    session = MagicMock()
    ctx = Context()
    try:
        adapters = build_adapters(session, "123456789012", regions, ctx, **kwargs)
    finally:
        ctx.cancel()
    return session, adapters


class TestBuildAdapters:

    def test_one_adapter_per_type_and_region(self):
        session, adapters = _build(["eu-west-1", "us-east-1"])

        instances = find_adapters(adapters, "ec2-instance")
        assert sorted(a.scopes()[0] for a in instances) == [
            "123456789012.eu-west-1", "123456789012.us-east-1",
        ]

    def test_cloudfront_created_once_with_account_scope(self):
        _, adapters = _build(["eu-west-1", "us-east-1"])
        distributions = find_adapters(adapters, "cloudfront-distribution")
        assert len(distributions) == 1
        assert distributions[0].scopes() == ["123456789012"]

    def test_ec2_adapters_share_a_bucket_per_region(self):
        _, adapters = _build(["eu-west-1"])
        ec2 = [a for a in adapters if a.type.startswith("ec2-")]
        assert len(ec2) == 3
        assert len({id(a.limit) for a in ec2}) == 1
        assert ec2[0].limit.max_capacity == 50
        assert ec2[0].limit.refill_rate == 10

    def test_rate_limit_override(self):
        _, adapters = _build(
            ["eu-west-1"], rate_limits={"ec2": {"max_capacity": 5, "refill_rate": 1}},
        )
        address = find_adapters(adapters, "ec2-address")[0]
        assert address.limit.max_capacity == 5
        assert address.limit.refill_rate == 1

    def test_max_parallel_applied_to_always_get(self):
        _, adapters = _build(["eu-west-1"], max_parallel=4)
        assert find_adapters(adapters, "lambda-function")[0].max_parallel == 4

    def test_one_client_per_service_and_region(self):
        session, _ = _build(["eu-west-1"])
        services = [c.args[0] for c in session.client.call_args_list]
        assert len(services) == len(set(services))
        assert "cloudfront" in services

    def test_metadata_matches_adapters(self):
        _, adapters = _build(["eu-west-1"])
        assert {m.type for m in all_metadata()} == {a.type for a in adapters}
