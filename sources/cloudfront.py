"""
CloudFront distribution adapter.

CloudFront is a global service: the adapter's region is "" so its scope is
the bare account ID.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from adapters import (
    AlwaysGetAdapter,
    Context,
    GLOBAL_SCOPE,
    LimitBucket,
    TokenPaginator,
    format_scope,
    handle_tags_error,
    parse_arn,
    parse_scope,
    to_attributes,
)
from sdp import AdapterMetadata, ErrorType, Health, Item, QueryError, QueryMethod
from sources.shared import link_arn, tags_to_map

logger = logging.getLogger(__name__)

_S3_DNS_RE = re.compile(r"([^.]+)\.s3\.([^.]+)\.amazonaws\.com")

_DISTRIBUTION_HEALTH = {
    "InProgress": Health.PENDING,
    "Deployed": Health.OK,
}


def _items(container: Optional[dict]) -> list:
    """CloudFront wraps every list as ``{"Quantity": n, "Items": [...]}``."""
    if not container:
        return []
    return container.get("Items") or []


def _link_cache_behavior(item: Item, scope: str, behavior: dict) -> None:
    if behavior.get("CachePolicyId"):
        item.link("cloudfront-cache-policy", QueryMethod.GET, behavior["CachePolicyId"], scope, in_=True)

    if behavior.get("FieldLevelEncryptionId"):
        item.link(
            "cloudfront-field-level-encryption", QueryMethod.GET,
            behavior["FieldLevelEncryptionId"], scope, in_=True,
        )

    if behavior.get("OriginRequestPolicyId"):
        item.link(
            "cloudfront-origin-request-policy", QueryMethod.GET,
            behavior["OriginRequestPolicyId"], scope, in_=True,
        )

    link_arn(item, "cloudfront-realtime-log-config", behavior.get("RealtimeLogConfigArn"))

    if behavior.get("ResponseHeadersPolicyId"):
        item.link(
            "cloudfront-response-headers-policy", QueryMethod.GET,
            behavior["ResponseHeadersPolicyId"], scope, in_=True,
        )

    for key_group in _items(behavior.get("TrustedKeyGroups")):
        item.link("cloudfront-key-group", QueryMethod.GET, key_group, scope, in_=True)

    for function in _items(behavior.get("FunctionAssociations")):
        link_arn(item, "cloudfront-function", function.get("FunctionARN"))

    for function in _items(behavior.get("LambdaFunctionAssociations")):
        link_arn(item, "lambda-function", function.get("LambdaFunctionARN"))


def distribution_get_func(ctx: Context, client: Any, scope: str, params: dict) -> Item:
    out = client.get_distribution(**params)
    distribution = out.get("Distribution")

    if distribution is None:
        raise QueryError(ErrorType.NOTFOUND, "distribution was nil", scope=scope)

    try:
        tags_out = client.list_tags_for_resource(Resource=distribution["ARN"])
        tags = tags_to_map(_items(tags_out.get("Tags")))
    except Exception as exc:
        tags = handle_tags_error(exc)

    item = Item(
        type="cloudfront-distribution",
        unique_attribute="Id",
        scope=scope,
        attributes=to_attributes(distribution),
        tags=tags,
        health=_DISTRIBUTION_HEALTH.get(distribution.get("Status")),
    )

    if distribution.get("DomainName"):
        item.link("dns", QueryMethod.SEARCH, distribution["DomainName"], GLOBAL_SCOPE, in_=True, out=True)

    for key_group in _items(distribution.get("ActiveTrustedKeyGroups")):
        if key_group.get("KeyGroupId"):
            item.link("cloudfront-key-group", QueryMethod.GET, key_group["KeyGroupId"], scope, in_=True)

    for record in distribution.get("AliasICPRecordals", []):
        if record.get("CNAME"):
            item.link("dns", QueryMethod.SEARCH, record["CNAME"], GLOBAL_SCOPE, in_=True, out=True)

    config = distribution.get("DistributionConfig") or {}

    for alias in _items(config.get("Aliases")):
        item.link("dns", QueryMethod.SEARCH, alias, GLOBAL_SCOPE, in_=True, out=True)

    if config.get("ContinuousDeploymentPolicyId"):
        item.link(
            "cloudfront-continuous-deployment-policy", QueryMethod.GET,
            config["ContinuousDeploymentPolicyId"], scope, in_=True, out=True,
        )

    if config.get("DefaultCacheBehavior"):
        _link_cache_behavior(item, scope, config["DefaultCacheBehavior"])

    for behavior in _items(config.get("CacheBehaviors")):
        _link_cache_behavior(item, scope, behavior)

    for origin in _items(config.get("Origins")):
        domain = origin.get("DomainName")
        if domain:
            item.link("dns", QueryMethod.SEARCH, domain, GLOBAL_SCOPE, in_=True, out=True)

        if origin.get("OriginAccessControlId"):
            item.link(
                "cloudfront-origin-access-control", QueryMethod.GET,
                origin["OriginAccessControlId"], scope, in_=True,
            )

        s3_config = origin.get("S3OriginConfig")
        if s3_config is not None:
            match = _S3_DNS_RE.search(domain or "")
            if match:
                # S3 buckets are account-scoped, not regional
                account_id, _ = parse_scope(scope)
                item.link(
                    "s3-bucket", QueryMethod.GET, match.group(1),
                    format_scope(account_id, ""), in_=True, out=True,
                )

            if s3_config.get("OriginAccessIdentity"):
                item.link(
                    "cloudfront-cloud-front-origin-access-identity", QueryMethod.GET,
                    s3_config["OriginAccessIdentity"], scope, in_=True,
                )

    logging_bucket = (config.get("Logging") or {}).get("Bucket")
    if logging_bucket:
        item.link("dns", QueryMethod.SEARCH, logging_bucket, GLOBAL_SCOPE, in_=True, out=True)

    certificate = config.get("ViewerCertificate") or {}
    link_arn(item, "acm-certificate", certificate.get("ACMCertificateArn"))
    if certificate.get("IAMCertificateId"):
        item.link(
            "iam-server-certificate", QueryMethod.GET,
            certificate["IAMCertificateId"], scope, in_=True,
        )

    web_acl = config.get("WebACLId")
    if web_acl:
        # WAFv2 ACLs are referenced by ARN, classic WAF ACLs by bare ID
        try:
            parse_arn(web_acl)
        except ValueError:
            item.link("waf-web-acl", QueryMethod.GET, web_acl, scope, in_=True)
        else:
            link_arn(item, "wafv2-web-acl", web_acl)

    return item


def distribution_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="cloudfront-distribution",
        descriptive_name="CloudFront Distribution",
        get_description="Get a distribution by ID",
        list_description="List all distributions",
        search_description="Search distributions by ARN",
        category="network",
        potential_links=[
            "cloudfront-key-group", "cloudfront-cloud-front-origin-access-identity",
            "cloudfront-continuous-deployment-policy", "cloudfront-cache-policy",
            "cloudfront-field-level-encryption", "cloudfront-function",
            "cloudfront-origin-access-control", "cloudfront-origin-request-policy",
            "cloudfront-realtime-log-config", "cloudfront-response-headers-policy",
            "dns", "lambda-function", "s3-bucket", "acm-certificate",
            "iam-server-certificate", "waf-web-acl", "wafv2-web-acl",
        ],
    )


def new_distribution_adapter(
    client: Any, account_id: str, limit: Optional[LimitBucket] = None,
) -> AlwaysGetAdapter:
    return AlwaysGetAdapter(
        item_type="cloudfront-distribution",
        client=client,
        account_id=account_id,
        region="",
        limit=limit,
        metadata=distribution_metadata(),
        get_func=distribution_get_func,
        get_input_mapper=lambda scope, query: {"Id": query},
        list_func_paginator_builder=lambda c, params: TokenPaginator(
            c.list_distributions, params,
            input_token="Marker", output_token="DistributionList.NextMarker",
        ),
        list_func_output_mapper=lambda output, params: [
            {"Id": d["Id"]}
            for d in _items(output.get("DistributionList"))
            if d.get("Id")
        ],
    )
