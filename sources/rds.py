"""
RDS adapters: DB clusters and DB parameter groups.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from adapters import (
    Context,
    DescribeOnlyAdapter,
    GLOBAL_SCOPE,
    GetListAdapter,
    LimitBucket,
    TokenPaginator,
    handle_tags_error,
    to_attributes,
)
from sdp import AdapterMetadata, ErrorType, Item, QueryError, QueryMethod
from sources.shared import link_arn, tags_to_map

logger = logging.getLogger(__name__)


def _list_tags(client: Any, arn: Optional[str]) -> dict[str, str]:
    out = client.list_tags_for_resource(ResourceName=arn)
    return tags_to_map(out.get("TagList"))


# ---------------------------------------------------------------------------
# rds-db-cluster
# ---------------------------------------------------------------------------

def db_cluster_output_mapper(
    ctx: Context, client: Any, scope: str, params: dict, output: dict,
) -> list[Item]:
    items = []

    for cluster in output.get("DBClusters", []):
        try:
            tags = _list_tags(client, cluster.get("DBClusterArn"))
        except Exception as exc:
            tags = handle_tags_error(exc)

        item = Item(
            type="rds-db-cluster",
            unique_attribute="DBClusterIdentifier",
            scope=scope,
            attributes=to_attributes(cluster, "TagList"),
            tags=tags,
        )

        if cluster.get("DBSubnetGroup"):
            item.link("rds-db-subnet-group", QueryMethod.GET, cluster["DBSubnetGroup"], scope, in_=True)

        for key in ("Endpoint", "ReaderEndpoint"):
            if cluster.get(key):
                item.link("dns", QueryMethod.SEARCH, cluster[key], GLOBAL_SCOPE, in_=True, out=True)

        for endpoint in cluster.get("CustomEndpoints", []):
            item.link("dns", QueryMethod.SEARCH, endpoint, GLOBAL_SCOPE, in_=True, out=True)

        for replica in cluster.get("ReadReplicaIdentifiers", []):
            link_arn(item, "rds-db-cluster", replica, in_=True, out=True)

        for member in cluster.get("DBClusterMembers", []):
            if member.get("DBInstanceIdentifier"):
                item.link(
                    "rds-db-instance", QueryMethod.GET,
                    member["DBInstanceIdentifier"], scope, in_=True, out=True,
                )

        for group in cluster.get("VpcSecurityGroups", []):
            if group.get("VpcSecurityGroupId"):
                item.link("ec2-security-group", QueryMethod.GET, group["VpcSecurityGroupId"], scope, in_=True)

        if cluster.get("HostedZoneId"):
            item.link("route53-hosted-zone", QueryMethod.GET, cluster["HostedZoneId"], scope, in_=True)

        if cluster.get("ActivityStreamKinesisStreamName"):
            item.link(
                "kinesis-stream", QueryMethod.GET,
                cluster["ActivityStreamKinesisStreamName"], scope, in_=True, out=True,
            )

        for membership in cluster.get("DBClusterOptionGroupMemberships", []):
            if membership.get("DBClusterOptionGroupName"):
                item.link(
                    "rds-option-group", QueryMethod.GET,
                    membership["DBClusterOptionGroupName"], scope, in_=True,
                )

        if cluster.get("DBClusterParameterGroup"):
            item.link(
                "rds-db-cluster-parameter-group", QueryMethod.GET,
                cluster["DBClusterParameterGroup"], scope, in_=True,
            )

        # ARN references resolve to the scope of the ARN, which may be in
        # another region or account
        link_arn(item, "kms-key", cluster.get("KmsKeyId"))
        link_arn(item, "kms-key", cluster.get("PerformanceInsightsKMSKeyId"))
        link_arn(item, "iam-role", cluster.get("MonitoringRoleArn"))
        link_arn(item, "rds-db-cluster", cluster.get("ReplicationSourceIdentifier"), in_=True, out=True)

        secret = cluster.get("MasterUserSecret") or {}
        link_arn(item, "kms-key", secret.get("KmsKeyId"))
        link_arn(item, "secretsmanager-secret", secret.get("SecretArn"))

        for role in cluster.get("AssociatedRoles", []):
            link_arn(item, "iam-role", role.get("RoleArn"))

        items.append(item)

    return items


def db_cluster_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="rds-db-cluster",
        descriptive_name="RDS Cluster",
        get_description="Get a DB cluster by identifier",
        list_description="List all DB clusters",
        search_description="Search for a DB cluster by ARN",
        category="database",
        potential_links=[
            "rds-db-subnet-group", "dns", "rds-db-cluster", "rds-db-instance",
            "ec2-security-group", "route53-hosted-zone", "kms-key",
            "kinesis-stream", "rds-option-group", "rds-db-cluster-parameter-group",
            "secretsmanager-secret", "iam-role",
        ],
    )


def new_db_cluster_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> DescribeOnlyAdapter:
    return DescribeOnlyAdapter(
        item_type="rds-db-cluster",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=db_cluster_metadata(),
        describe_func=lambda c, params: c.describe_db_clusters(**params),
        input_mapper_get=lambda scope, query: {"DBClusterIdentifier": query},
        input_mapper_list=lambda scope: {},
        paginator_builder=lambda c, params: TokenPaginator(
            c.describe_db_clusters, params, input_token="Marker",
        ),
        output_mapper=db_cluster_output_mapper,
    )


# ---------------------------------------------------------------------------
# rds-db-parameter-group
# ---------------------------------------------------------------------------

def _parameters(ctx: Context, client: Any, group_name: str) -> list[dict]:
    paginator = TokenPaginator(
        client.describe_db_parameters,
        {"DBParameterGroupName": group_name},
        input_token="Marker",
    )
    parameters: list[dict] = []
    for page in paginator.pages(ctx):
        parameters.extend(page.get("Parameters", []))
    return parameters


def db_parameter_group_get(ctx: Context, client: Any, scope: str, query: str) -> dict:
    out = client.describe_db_parameter_groups(DBParameterGroupName=query)
    groups = out.get("DBParameterGroups", [])

    if len(groups) != 1:
        raise QueryError(ErrorType.OTHER, f"expected 1 group, got {len(groups)}")

    group = groups[0]
    return {**group, "Parameters": _parameters(ctx, client, group["DBParameterGroupName"])}


def db_parameter_group_list(ctx: Context, client: Any, scope: str) -> list[dict]:
    paginator = TokenPaginator(
        client.describe_db_parameter_groups, {}, input_token="Marker",
    )

    groups = []
    for page in paginator.pages(ctx):
        for group in page.get("DBParameterGroups", []):
            groups.append({
                **group,
                "Parameters": _parameters(ctx, client, group["DBParameterGroupName"]),
            })
    return groups


def db_parameter_group_list_tags(ctx: Context, group: dict, client: Any) -> dict[str, str]:
    return _list_tags(client, group.get("DBParameterGroupArn"))


def db_parameter_group_item_mapper(scope: str, group: dict) -> Item:
    return Item(
        type="rds-db-parameter-group",
        unique_attribute="DBParameterGroupName",
        scope=scope,
        attributes=to_attributes(group),
    )


def db_parameter_group_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="rds-db-parameter-group",
        descriptive_name="RDS Parameter Group",
        get_description="Get a parameter group by name",
        list_description="List all parameter groups",
        search_description="Search for a parameter group by ARN",
        category="database",
    )


def new_db_parameter_group_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> GetListAdapter:
    return GetListAdapter(
        item_type="rds-db-parameter-group",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=db_parameter_group_metadata(),
        get_func=db_parameter_group_get,
        list_func=db_parameter_group_list,
        list_tags_func=db_parameter_group_list_tags,
        item_mapper=db_parameter_group_item_mapper,
    )
