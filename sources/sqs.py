"""
SQS queue adapter.

Queues are addressed by URL.  ``ListQueues`` returns only URLs, so every
queue is resolved with ``GetQueueAttributes``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from adapters import (
    AlwaysGetAdapter,
    Context,
    LimitBucket,
    TokenPaginator,
    handle_tags_error,
    parse_arn,
    to_attributes,
)
from sdp import AdapterMetadata, ErrorType, Item, QueryError
from sources.shared import link_arn

logger = logging.getLogger(__name__)


def queue_url_from_arn(arn: str) -> str:
    """``arn:aws:sqs:eu-west-2:123:q`` -> ``https://sqs.eu-west-2.amazonaws.com/123/q``"""
    parsed = parse_arn(arn)
    return f"https://sqs.{parsed.region}.amazonaws.com/{parsed.account_id}/{parsed.resource}"


def queue_get_func(ctx: Context, client: Any, scope: str, params: dict) -> Item:
    out = client.get_queue_attributes(**params)
    attrs = out.get("Attributes")

    if attrs is None:
        raise QueryError(
            ErrorType.NOTFOUND, "get queue attributes response was nil", scope=scope,
        )

    url = params["QueueUrl"]
    attributes = to_attributes(attrs)
    attributes.set("QueueUrl", url)

    try:
        tags = dict(client.list_queue_tags(QueueUrl=url).get("Tags") or {})
    except Exception as exc:
        tags = handle_tags_error(exc)

    item = Item(
        type="sqs-queue",
        unique_attribute="QueueUrl",
        scope=scope,
        attributes=attributes,
        tags=tags,
    )

    # RedrivePolicy is a JSON document naming the dead-letter queue
    redrive = attrs.get("RedrivePolicy")
    if redrive:
        try:
            target = json.loads(redrive).get("deadLetterTargetArn")
        except (ValueError, AttributeError):
            target = None
        link_arn(item, "sqs-queue", target, in_=True, out=True)

    return item


def queue_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="sqs-queue",
        descriptive_name="SQS Queue",
        get_description="Get an SQS queue attributes by its URL",
        list_description="List all SQS queue URLs",
        search_description="Search SQS queue by ARN",
        category="configuration",
        potential_links=["sqs-queue"],
    )


def new_queue_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> AlwaysGetAdapter:
    return AlwaysGetAdapter(
        item_type="sqs-queue",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=queue_metadata(),
        get_func=queue_get_func,
        get_input_mapper=lambda scope, query: {
            "QueueUrl": query,
            "AttributeNames": ["All"],
        },
        search_get_input_mapper=lambda scope, query: {
            "QueueUrl": queue_url_from_arn(query),
            "AttributeNames": ["All"],
        },
        list_func_paginator_builder=lambda c, params: TokenPaginator(c.list_queues, params),
        list_func_output_mapper=lambda output, params: [
            {"QueueUrl": url, "AttributeNames": ["All"]}
            for url in output.get("QueueUrls", [])
        ],
    )
