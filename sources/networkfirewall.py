"""
Network Firewall firewall adapter.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from adapters import (
    AlwaysGetAdapter,
    Context,
    LimitBucket,
    TokenPaginator,
    parse_arn,
    to_attributes,
)
from sdp import AdapterMetadata, ErrorType, Health, Item, QueryError, QueryMethod
from sources.shared import link_arn, tags_to_map

logger = logging.getLogger(__name__)

_FIREWALL_HEALTH = {
    "DELETING": Health.PENDING,
    "PROVISIONING": Health.PENDING,
    "READY": Health.OK,
}


def firewall_get_func(ctx: Context, client: Any, scope: str, params: dict) -> Item:
    response = client.describe_firewall(**params)
    firewall = response.get("Firewall")

    if not firewall or not firewall.get("FirewallName"):
        raise QueryError(ErrorType.NOTFOUND, "Firewall was nil", scope=scope)

    status = response.get("FirewallStatus") or {}

    attributes = to_attributes({
        "Name": firewall["FirewallName"],
        "Config": {k: v for k, v in firewall.items() if k != "Tags"},
        "Status": status,
    })

    item = Item(
        type="network-firewall-firewall",
        unique_attribute="Name",
        scope=scope,
        attributes=attributes,
        tags=tags_to_map(firewall.get("Tags")),
        health=_FIREWALL_HEALTH.get(status.get("Status")),
    )

    link_arn(item, "network-firewall-firewall-policy", firewall.get("FirewallPolicyArn"))

    for mapping in firewall.get("SubnetMappings", []):
        if mapping.get("SubnetId"):
            item.link("ec2-subnet", QueryMethod.GET, mapping["SubnetId"], scope, in_=True)

    if firewall.get("VpcId"):
        item.link("ec2-vpc", QueryMethod.GET, firewall["VpcId"], scope, in_=True)

    key_id = (firewall.get("EncryptionConfiguration") or {}).get("KeyId")
    if key_id:
        # Either a full ARN or an ID/alias in this account and region
        if not link_arn(item, "kms-key", key_id):
            item.link("kms-key", QueryMethod.GET, key_id, scope, in_=True)

    for sync_state in (status.get("SyncStates") or {}).values():
        subnet_id = (sync_state.get("Attachment") or {}).get("SubnetId")
        if subnet_id:
            item.link("ec2-subnet", QueryMethod.GET, subnet_id, scope, in_=True)

    return item


def _firewall_arn_input(scope: str, query: str) -> dict:
    parse_arn(query)
    return {"FirewallArn": query}


def firewall_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="network-firewall-firewall",
        descriptive_name="Network Firewall",
        get_description="Get a Network Firewall Firewall by name",
        list_description="List Network Firewall Firewalls",
        search_description="Search for Network Firewall Firewalls by ARN",
        category="security",
        potential_links=["network-firewall-firewall-policy", "ec2-subnet", "ec2-vpc", "kms-key"],
    )


def new_firewall_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> AlwaysGetAdapter:
    return AlwaysGetAdapter(
        item_type="network-firewall-firewall",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=firewall_metadata(),
        get_func=firewall_get_func,
        get_input_mapper=lambda scope, query: {"FirewallName": query},
        search_get_input_mapper=_firewall_arn_input,
        list_func_paginator_builder=lambda c, params: TokenPaginator(c.list_firewalls, params),
        list_func_output_mapper=lambda output, params: [
            {"FirewallArn": fw["FirewallArn"]}
            for fw in output.get("Firewalls", [])
            if fw.get("FirewallArn")
        ],
    )
