"""
Resource adapters and the wiring that builds them.

``build_adapters`` creates one boto3 client per service and region, one
LimitBucket per API family and region, and every adapter that uses them.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from botocore.config import Config

from adapters import Adapter, Context, LimitBucket
from sdp import AdapterMetadata
from sources import cloudfront, dynamodb, ec2, efs, lambda_, networkfirewall, rds, sqs

logger = logging.getLogger(__name__)

# 50% of the documented EC2 request-token budget
DEFAULT_RATE_LIMITS: dict[str, dict[str, int]] = {
    "ec2": {"max_capacity": 50, "refill_rate": 10},
    "rds": {"max_capacity": 50, "refill_rate": 10},
    "dynamodb": {"max_capacity": 50, "refill_rate": 10},
    "lambda": {"max_capacity": 50, "refill_rate": 10},
    "sqs": {"max_capacity": 50, "refill_rate": 10},
    "cloudfront": {"max_capacity": 20, "refill_rate": 5},
    "network-firewall": {"max_capacity": 20, "refill_rate": 5},
    "efs": {"max_capacity": 20, "refill_rate": 5},
}

_CLIENT_CONFIG = Config(retries={"mode": "adaptive", "max_attempts": 5})

# CloudFront's control plane only answers in us-east-1
_CLOUDFRONT_REGION = "us-east-1"

# (service, factory) for every regional adapter
_REGIONAL_FACTORIES = (
    ("ec2", ec2.new_address_adapter),
    ("ec2", ec2.new_instance_adapter),
    ("ec2", ec2.new_vpc_peering_connection_adapter),
    ("rds", rds.new_db_cluster_adapter),
    ("rds", rds.new_db_parameter_group_adapter),
    ("dynamodb", dynamodb.new_table_adapter),
    ("dynamodb", dynamodb.new_backup_adapter),
    ("lambda", lambda_.new_function_adapter),
    ("sqs", sqs.new_queue_adapter),
    ("network-firewall", networkfirewall.new_firewall_adapter),
    ("efs", efs.new_replication_configuration_adapter),
)

_METADATA = (
    ec2.address_metadata,
    ec2.instance_metadata,
    ec2.vpc_peering_connection_metadata,
    rds.db_cluster_metadata,
    rds.db_parameter_group_metadata,
    dynamodb.table_metadata,
    dynamodb.backup_metadata,
    lambda_.function_metadata,
    sqs.queue_metadata,
    networkfirewall.firewall_metadata,
    efs.replication_configuration_metadata,
    cloudfront.distribution_metadata,
)


def _make_bucket(
    service: str,
    scope_name: str,
    ctx: Context,
    rate_limits: dict[str, dict[str, int]],
) -> LimitBucket:
    settings = {**DEFAULT_RATE_LIMITS.get(service, {}), **rate_limits.get(service, {})}
    bucket = LimitBucket(
        max_capacity=int(settings.get("max_capacity", 50)),
        refill_rate=int(settings.get("refill_rate", 10)),
        name=f"{service}-{scope_name}",
    )
    bucket.start(ctx)
    return bucket


def build_adapters(
    session: Any,
    account_id: str,
    regions: list[str],
    ctx: Context,
    rate_limits: Optional[dict[str, dict[str, int]]] = None,
    max_parallel: Optional[int] = None,
) -> list[Adapter]:
    """Create and validate every adapter for *account_id* across *regions*.

    *session* is a ``boto3.Session``.  Buckets are started against *ctx* and
    stop refilling once it is cancelled.
    """
    rate_limits = rate_limits or {}
    adapters: list[Adapter] = []

    for region in regions:
        clients: dict[str, Any] = {}
        buckets: dict[str, LimitBucket] = {}

        for service, factory in _REGIONAL_FACTORIES:
            if service not in clients:
                clients[service] = session.client(
                    service, region_name=region, config=_CLIENT_CONFIG,
                )
                buckets[service] = _make_bucket(service, region, ctx, rate_limits)

            adapters.append(factory(
                clients[service], account_id, region, limit=buckets[service],
            ))

    # Account-global, so created once regardless of how many regions
    cloudfront_client = session.client(
        "cloudfront", region_name=_CLOUDFRONT_REGION, config=_CLIENT_CONFIG,
    )
    adapters.append(cloudfront.new_distribution_adapter(
        cloudfront_client, account_id,
        limit=_make_bucket("cloudfront", "global", ctx, rate_limits),
    ))

    for adapter in adapters:
        if max_parallel and hasattr(adapter, "max_parallel"):
            adapter.max_parallel = max_parallel
        adapter.validate()

    logger.info(
        "Initialised %d adapters for account %s in %d region(s)",
        len(adapters), account_id, len(regions),
    )
    return adapters


def find_adapters(adapters: list[Adapter], item_type: str) -> list[Adapter]:
    """Every adapter serving *item_type*, one per scope."""
    return [a for a in adapters if a.type == item_type]


def all_metadata() -> list[AdapterMetadata]:
    """Metadata for every adapter type, without creating any clients."""
    return [metadata() for metadata in _METADATA]
