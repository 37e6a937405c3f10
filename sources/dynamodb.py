"""
DynamoDB adapters: tables and backups.

Both are Always-Get.  ``ListBackups`` pages with the ARN of the last backup
returned rather than an opaque token, and repeats that ARN once the listing
is exhausted, so it has its own paginator.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from adapters import (
    AlwaysGetAdapter,
    Context,
    LimitBucket,
    TokenPaginator,
    format_scope,
    handle_tags_error,
    parse_scope,
    to_attributes,
)
from sdp import AdapterMetadata, ErrorType, Health, Item, QueryError, QueryMethod
from sources.shared import link_arn, tags_to_map

logger = logging.getLogger(__name__)


class ListBackupsPaginator(TokenPaginator):
    """Pages ``ListBackups`` using ``ExclusiveStartBackupArn``.

    Stops when ``LastEvaluatedBackupArn`` is absent or equals the ARN that
    was just sent.
    """

    def __init__(self, client: Any, params: Optional[dict] = None) -> None:
        super().__init__(
            client.list_backups,
            params,
            input_token="ExclusiveStartBackupArn",
            output_token="LastEvaluatedBackupArn",
        )


# ---------------------------------------------------------------------------
# dynamodb-table
# ---------------------------------------------------------------------------

_TABLE_HEALTH = {
    "CREATING": Health.PENDING,
    "UPDATING": Health.PENDING,
    "DELETING": Health.PENDING,
    "ARCHIVING": Health.PENDING,
    "ACTIVE": Health.OK,
    "INACCESSIBLE_ENCRYPTION_CREDENTIALS": Health.ERROR,
    "ARCHIVED": Health.WARNING,
}


def _table_tags(ctx: Context, client: Any, arn: str) -> dict[str, str]:
    paginator = TokenPaginator(client.list_tags_of_resource, {"ResourceArn": arn})
    tags: dict[str, str] = {}
    for page in paginator.pages(ctx):
        tags.update(tags_to_map(page.get("Tags")))
    return tags


def table_get_func(ctx: Context, client: Any, scope: str, params: dict) -> Item:
    out = client.describe_table(**params)
    table = out.get("Table")

    if table is None:
        raise QueryError(ErrorType.NOTFOUND, "returned table is nil", scope=scope)

    try:
        tags = _table_tags(ctx, client, table["TableArn"])
    except (ClientError, BotoCoreError, KeyError) as exc:
        tags = handle_tags_error(exc)

    item = Item(
        type="dynamodb-table",
        unique_attribute="TableName",
        scope=scope,
        attributes=to_attributes(table),
        tags=tags,
        health=_TABLE_HEALTH.get(table.get("TableStatus")),
    )

    try:
        streams = client.describe_kinesis_streaming_destination(TableName=table["TableName"])
    except (ClientError, BotoCoreError) as exc:
        logger.debug("No Kinesis destinations for %s: %s", table["TableName"], exc)
    else:
        for dest in streams.get("KinesisDataStreamDestinations", []):
            link_arn(item, "kinesis-stream", dest.get("StreamArn"), in_=True, out=True)

    restore = table.get("RestoreSummary") or {}
    link_arn(item, "backup-recovery-point", restore.get("SourceBackupArn"))
    link_arn(item, "dynamodb-table", restore.get("SourceTableArn"))

    link_arn(item, "kms-key", (table.get("SSEDescription") or {}).get("KMSMasterKeyArn"))

    # Global table replicas share the table name in each replica region
    account_id, _ = parse_scope(scope)
    for replica in table.get("Replicas", []):
        if replica.get("RegionName"):
            item.link(
                "dynamodb-table", QueryMethod.GET, table["TableName"],
                format_scope(account_id, replica["RegionName"]),
                in_=True, out=True,
            )

    return item


def table_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="dynamodb-table",
        descriptive_name="DynamoDB Table",
        get_description="Get a DynamoDB table by name",
        list_description="List all DynamoDB tables",
        search_description="Search for DynamoDB tables by ARN",
        category="database",
        potential_links=["kinesis-stream", "backup-recovery-point", "dynamodb-table", "kms-key"],
    )


def new_table_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> AlwaysGetAdapter:
    return AlwaysGetAdapter(
        item_type="dynamodb-table",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=table_metadata(),
        get_func=table_get_func,
        get_input_mapper=lambda scope, query: {"TableName": query},
        list_func_paginator_builder=lambda c, params: TokenPaginator(
            c.list_tables, params,
            input_token="ExclusiveStartTableName",
            output_token="LastEvaluatedTableName",
        ),
        list_func_output_mapper=lambda output, params: [
            {"TableName": name} for name in output.get("TableNames", [])
        ],
    )


# ---------------------------------------------------------------------------
# dynamodb-backup
# ---------------------------------------------------------------------------

def backup_get_func(ctx: Context, client: Any, scope: str, params: dict) -> Item:
    out = client.describe_backup(**params)
    description = out.get("BackupDescription")

    if description is None:
        raise QueryError(ErrorType.NOTFOUND, "backup description was nil", scope=scope)

    details = description.get("BackupDetails")
    if details is None:
        raise QueryError(ErrorType.NOTFOUND, "backup details were nil", scope=scope)

    item = Item(
        type="dynamodb-backup",
        unique_attribute="BackupName",
        scope=scope,
        attributes=to_attributes(details),
    )

    table_name = (description.get("SourceTableDetails") or {}).get("TableName")
    if table_name:
        item.link("dynamodb-table", QueryMethod.GET, table_name, scope, in_=True, out=True)

    return item


def backup_list_output_mapper(output: dict, params: dict) -> list[dict]:
    return [
        {"BackupArn": summary["BackupArn"]}
        for summary in output.get("BackupSummaries", [])
        if summary.get("BackupArn")
    ]


def backup_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="dynamodb-backup",
        descriptive_name="DynamoDB Backup",
        supports_get=False,
        list_description="List all DynamoDB backups",
        search_description="Search for a DynamoDB backup by table name",
        category="storage",
        potential_links=["dynamodb-table"],
    )


def new_backup_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> AlwaysGetAdapter:
    return AlwaysGetAdapter(
        item_type="dynamodb-backup",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=backup_metadata(),
        get_func=backup_get_func,
        # Backups can only be described by ARN, so Get by name is unsupported
        get_input_mapper=lambda scope, query: None,
        list_func_paginator_builder=ListBackupsPaginator,
        list_func_output_mapper=backup_list_output_mapper,
        search_input_mapper=lambda scope, query: {"TableName": query},
    )
