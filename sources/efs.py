"""
EFS replication configuration adapter.

A replication configuration lives in the source file system's region and
points at destination file systems in other regions of the same account.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from adapters import (
    Context,
    DescribeOnlyAdapter,
    LimitBucket,
    TokenPaginator,
    format_scope,
    parse_scope,
    to_attributes,
)
from sdp import AdapterMetadata, ErrorType, Health, Item, QueryError, QueryMethod
from sources.shared import link_arn

logger = logging.getLogger(__name__)

_DESTINATION_HEALTH = {
    "ERROR": Health.ERROR,
    "ENABLING": Health.PENDING,
    "DELETING": Health.PENDING,
    "PAUSING": Health.PENDING,
}


def replication_health(destinations: list[dict]) -> Health:
    """Worst status across destinations; OK when none is degraded."""
    health = Health.OK
    for destination in destinations:
        status = _DESTINATION_HEALTH.get(destination.get("Status"))
        if status == Health.ERROR:
            return Health.ERROR
        if status is not None:
            health = status
    return health


def replication_configuration_output_mapper(
    ctx: Context, client: Any, scope: str, params: dict, output: dict,
) -> list[Item]:
    account_id, _ = parse_scope(scope)
    items = []

    for replication in output.get("Replications", []):
        source_id = replication.get("SourceFileSystemId")
        source_region = replication.get("SourceFileSystemRegion")
        if not source_id:
            raise QueryError(
                ErrorType.OTHER, "efs-replication-configuration has nil SourceFileSystemId",
            )
        if not source_region:
            raise QueryError(
                ErrorType.OTHER, "efs-replication-configuration has nil SourceFileSystemRegion",
            )

        destinations = replication.get("Destinations", [])

        item = Item(
            type="efs-replication-configuration",
            unique_attribute="SourceFileSystemId",
            scope=scope,
            attributes=to_attributes(replication),
            health=replication_health(destinations),
        )

        item.link(
            "efs-file-system", QueryMethod.GET, source_id,
            format_scope(account_id, source_region),
        )

        for destination in destinations:
            if destination.get("FileSystemId") and destination.get("Region"):
                item.link(
                    "efs-file-system", QueryMethod.GET, destination["FileSystemId"],
                    format_scope(account_id, destination["Region"]),
                    out=True,
                )

        link_arn(item, "efs-file-system", replication.get("OriginalSourceFileSystemArn"))

        items.append(item)

    return items


def replication_configuration_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="efs-replication-configuration",
        descriptive_name="EFS Replication Configuration",
        get_description="Get a replication configuration by file system ID",
        list_description="List all replication configurations",
        search_description="Search for a replication configuration by ARN",
        category="storage",
        potential_links=["efs-file-system"],
    )


def new_replication_configuration_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> DescribeOnlyAdapter:
    return DescribeOnlyAdapter(
        item_type="efs-replication-configuration",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=replication_configuration_metadata(),
        describe_func=lambda c, params: c.describe_replication_configurations(**params),
        input_mapper_get=lambda scope, query: {"FileSystemId": query},
        input_mapper_list=lambda scope: {},
        paginator_builder=lambda c, params: TokenPaginator(
            c.describe_replication_configurations, params,
        ),
        output_mapper=replication_configuration_output_mapper,
    )
