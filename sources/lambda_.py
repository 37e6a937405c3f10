"""
Lambda function adapter.

``ListFunctions`` omits tags, URL configs and the resource policy, so every
listed function is resolved with ``GetFunction`` plus a handful of follow-up
calls.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from adapters import (
    AlwaysGetAdapter,
    Context,
    GLOBAL_SCOPE,
    LimitBucket,
    TokenPaginator,
    format_scope,
    parse_arn,
    to_attributes,
)
from sdp import (
    AdapterMetadata,
    BlastPropagation,
    ErrorType,
    Health,
    Item,
    LinkedItemQuery,
    Query,
    QueryError,
    QueryMethod,
)
from sources.shared import link_arn

logger = logging.getLogger(__name__)

_FUNCTION_HEALTH = {
    "Pending": Health.PENDING,
    "Active": Health.OK,
    "Inactive": None,
    "Failed": Health.ERROR,
}

# Resource-policy principals we know how to link, and the type each implies.
_POLICY_PRINCIPALS = {
    "sns.amazonaws.com": ("sns-topic", QueryMethod.GET),
    "elasticloadbalancing.amazonaws.com": ("elbv2-target-group", QueryMethod.SEARCH),
    "vpc-lattice.amazonaws.com": ("vpc-lattice-target-group", QueryMethod.SEARCH),
    "logs.amazonaws.com": ("logs-log-group", QueryMethod.SEARCH),
    "events.amazonaws.com": ("events-rule", QueryMethod.SEARCH),
    "s3.amazonaws.com": ("s3-bucket", QueryMethod.SEARCH),
}

# Async invocation destinations, keyed by the ARN's service.
_DESTINATION_TYPES = {
    "sns": "sns-topic",
    "sqs": "sqs-queue",
    "lambda": "lambda-function",
    "events": "events-event-bus",
}


# ---------------------------------------------------------------------------
# Link extraction
# ---------------------------------------------------------------------------

def _statement_services(statement: dict) -> list[str]:
    principal = statement.get("Principal")
    if not isinstance(principal, dict):
        return []
    services = principal.get("Service")
    if not isinstance(services, list):
        services = [services]
    return [s for s in services if isinstance(s, str)]


def extract_links_from_policy(policy: dict) -> list[LinkedItemQuery]:
    """Link to the services allowed to invoke the function."""
    links = []

    statements = policy.get("Statement") or []
    if not isinstance(statements, list):
        statements = [statements]

    for statement in statements:
        if not isinstance(statement, dict):
            continue

        condition = statement.get("Condition") or {}
        source_arn = (condition.get("ArnLike") or {}).get("AWS:SourceArn", "")

        for service in _statement_services(statement):
            if service not in _POLICY_PRINCIPALS:
                continue

            item_type, method = _POLICY_PRINCIPALS[service]

            if service == "s3.amazonaws.com":
                source_account = (condition.get("StringEquals") or {}).get("AWS:SourceAccount", "")
                scope = format_scope(source_account, "")
            else:
                try:
                    scope = parse_arn(source_arn).scope
                except ValueError:
                    continue

            if not scope or not source_arn:
                continue

            links.append(LinkedItemQuery(
                query=Query(type=item_type, method=method, query=source_arn, scope=scope),
                blast_propagation=BlastPropagation(in_=True, out=False),
            ))

    return links


def event_linked_item(destination_arn: str) -> Optional[LinkedItemQuery]:
    """Link for an async-invoke or dead-letter destination, or None."""
    try:
        parsed = parse_arn(destination_arn)
    except ValueError:
        return None

    item_type = _DESTINATION_TYPES.get(parsed.service)
    if item_type is None:
        return None

    return LinkedItemQuery(
        query=Query(
            type=item_type,
            method=QueryMethod.SEARCH,
            query=destination_arn,
            scope=parsed.scope,
        ),
        blast_propagation=BlastPropagation(in_=True, out=True),
    )


def _collect(ctx: Context, call: Any, params: dict, key: str) -> list[dict]:
    """Page through a per-function listing, giving up quietly on errors."""
    results: list[dict] = []
    paginator = TokenPaginator(call, params, input_token="Marker", output_token="NextMarker")
    try:
        for page in paginator.pages(ctx):
            results.extend(page.get(key, []))
    except (ClientError, BotoCoreError) as exc:
        logger.debug("Could not list %s for %s: %s", key, params, exc)
    return results


# ---------------------------------------------------------------------------
# lambda-function
# ---------------------------------------------------------------------------

def function_get_func(ctx: Context, client: Any, scope: str, params: dict) -> Item:
    out = client.get_function(**params)

    configuration = out.get("Configuration")
    if configuration is None:
        raise QueryError(ErrorType.OTHER, "function has nil configuration", scope=scope)

    name = configuration.get("FunctionName")
    if not name:
        raise QueryError(ErrorType.OTHER, "function has empty name", scope=scope)

    details = {
        "Code": out.get("Code"),
        "Concurrency": out.get("Concurrency"),
        "Configuration": configuration,
        "UrlConfigs": _collect(
            ctx, client.list_function_url_configs,
            {"FunctionName": name}, "FunctionUrlConfigs",
        ),
        "EventInvokeConfigs": _collect(
            ctx, client.list_function_event_invoke_configs,
            {"FunctionName": name}, "FunctionEventInvokeConfigs",
        ),
    }

    links: list[LinkedItemQuery] = []
    try:
        policy_out = client.get_policy(FunctionName=name)
    except (ClientError, BotoCoreError) as exc:
        logger.debug("No resource policy for %s: %s", name, exc)
    else:
        try:
            policy = json.loads(policy_out.get("Policy") or "{}")
        except ValueError:
            policy = {}
        details["Policy"] = policy
        try:
            links = extract_links_from_policy(policy)
        except (TypeError, AttributeError) as exc:
            logger.debug("Could not read resource policy for %s: %s", name, exc)
            links = []

    attributes = to_attributes(details)
    attributes.set("Name", name)

    item = Item(
        type="lambda-function",
        unique_attribute="Name",
        scope=scope,
        attributes=attributes,
        tags=dict(out.get("Tags") or {}),
        health=_FUNCTION_HEALTH.get(configuration.get("State")),
        linked_item_queries=links,
    )

    code = out.get("Code") or {}
    for key in ("Location", "ImageUri", "ResolvedImageUri"):
        if code.get(key):
            item.link("http", QueryMethod.GET, code[key], GLOBAL_SCOPE, in_=True)

    link_arn(item, "iam-role", configuration.get("Role"))
    link_arn(item, "kms-key", configuration.get("KMSKeyArn"))
    link_arn(item, "lambda-function", configuration.get("MasterArn"), in_=True, out=True)
    link_arn(item, "signer-signing-job", configuration.get("SigningJobArn"))
    link_arn(item, "signer-signing-profile", configuration.get("SigningProfileVersionArn"))

    dead_letter = (configuration.get("DeadLetterConfig") or {}).get("TargetArn")
    if dead_letter:
        lq = event_linked_item(dead_letter)
        if lq is not None:
            item.linked_item_queries.append(lq)

    for fs_config in configuration.get("FileSystemConfigs", []):
        link_arn(item, "efs-access-point", fs_config.get("Arn"), in_=True, out=True)

    for layer in configuration.get("Layers", []):
        arn = layer.get("Arn")
        if arn:
            try:
                parsed = parse_arn(arn)
            except ValueError:
                parsed = None
            if parsed is not None:
                # layer:name:version -> name:version
                item.link(
                    "lambda-layer-version", QueryMethod.GET,
                    parsed.resource_id, parsed.scope, in_=True, out=True,
                )
        link_arn(item, "signer-signing-job", layer.get("SigningJobArn"))
        link_arn(item, "signer-signing-profile", layer.get("SigningProfileVersionArn"))

    vpc = configuration.get("VpcConfig") or {}
    for group_id in vpc.get("SecurityGroupIds", []):
        item.link("ec2-security-group", QueryMethod.GET, group_id, scope, in_=True)
    for subnet_id in vpc.get("SubnetIds", []):
        item.link("ec2-subnet", QueryMethod.GET, subnet_id, scope, in_=True)
    if vpc.get("VpcId"):
        item.link("ec2-vpc", QueryMethod.GET, vpc["VpcId"], scope)

    for url_config in details["UrlConfigs"]:
        if url_config.get("FunctionUrl"):
            item.link("http", QueryMethod.GET, url_config["FunctionUrl"], GLOBAL_SCOPE, in_=True, out=True)

    for event_config in details["EventInvokeConfigs"]:
        destinations = event_config.get("DestinationConfig") or {}
        for outcome in ("OnFailure", "OnSuccess"):
            destination = (destinations.get(outcome) or {}).get("Destination")
            if destination:
                lq = event_linked_item(destination)
                if lq is not None:
                    item.linked_item_queries.append(lq)

    return item


def function_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="lambda-function",
        descriptive_name="Lambda Function",
        get_description="Get a lambda function by name",
        list_description="List all lambda functions",
        search_description="Search for lambda functions by ARN",
        category="compute",
        potential_links=[
            "iam-role", "s3-bucket", "sns-topic", "sqs-queue", "lambda-function",
            "events-event-bus", "elbv2-target-group", "vpc-lattice-target-group",
            "logs-log-group", "events-rule", "http", "efs-access-point", "kms-key",
            "lambda-layer-version", "signer-signing-job", "signer-signing-profile",
            "ec2-security-group", "ec2-subnet", "ec2-vpc",
        ],
    )


def new_function_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> AlwaysGetAdapter:
    return AlwaysGetAdapter(
        item_type="lambda-function",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=function_metadata(),
        get_func=function_get_func,
        get_input_mapper=lambda scope, query: {"FunctionName": query},
        list_func_paginator_builder=lambda c, params: TokenPaginator(
            c.list_functions, params, input_token="Marker", output_token="NextMarker",
        ),
        list_func_output_mapper=lambda output, params: [
            {"FunctionName": f["FunctionName"]}
            for f in output.get("Functions", [])
            if f.get("FunctionName")
        ],
    )
