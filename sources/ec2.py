"""
EC2 adapters: addresses, instances and VPC peering connections.

All three are Describe-Only: a single ``describe_*`` call with an ID filter
for Get and without one for List.  Every EC2 adapter in a region shares one
LimitBucket.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from adapters import (
    Context,
    DescribeOnlyAdapter,
    GLOBAL_SCOPE,
    LimitBucket,
    TokenPaginator,
    format_scope,
    to_attributes,
)
from sdp import AdapterMetadata, Health, Item, QueryMethod
from sources.shared import dig, link_arn, tags_to_map

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ec2-address
# ---------------------------------------------------------------------------

def address_input_mapper_get(scope: str, query: str) -> dict:
    return {"PublicIps": [query]}


def address_input_mapper_list(scope: str) -> dict:
    return {}


def address_output_mapper(
    ctx: Context, client: Any, scope: str, params: dict, output: dict,
) -> list[Item]:
    items = []

    for address in output.get("Addresses", []):
        item = Item(
            type="ec2-address",
            unique_attribute="PublicIp",
            scope=scope,
            attributes=to_attributes(address, "Tags"),
            tags=tags_to_map(address.get("Tags")),
        )

        # An elastic IP and whatever it is attached to are tightly coupled
        item.link("ip", QueryMethod.GET, address["PublicIp"], GLOBAL_SCOPE, in_=True, out=True)

        if address.get("InstanceId"):
            item.link("ec2-instance", QueryMethod.GET, address["InstanceId"], scope, in_=True, out=True)

        for key in ("CarrierIp", "CustomerOwnedIp", "PrivateIpAddress"):
            if address.get(key):
                item.link("ip", QueryMethod.GET, address[key], GLOBAL_SCOPE, in_=True, out=True)

        if address.get("NetworkInterfaceId"):
            item.link(
                "ec2-network-interface", QueryMethod.GET,
                address["NetworkInterfaceId"], scope, in_=True, out=True,
            )

        items.append(item)

    return items


def address_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="ec2-address",
        descriptive_name="EC2 Address",
        get_description="Get an EC2 address by Public IP",
        list_description="List EC2 addresses",
        search_description="Search for EC2 addresses by ARN",
        category="network",
        potential_links=["ec2-instance", "ip", "ec2-network-interface"],
    )


def new_address_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> DescribeOnlyAdapter:
    return DescribeOnlyAdapter(
        item_type="ec2-address",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=address_metadata(),
        describe_func=lambda c, params: c.describe_addresses(**params),
        input_mapper_get=address_input_mapper_get,
        input_mapper_list=address_input_mapper_list,
        output_mapper=address_output_mapper,
    )


# ---------------------------------------------------------------------------
# ec2-instance
# ---------------------------------------------------------------------------

_INSTANCE_HEALTH = {
    "pending": Health.PENDING,
    "running": Health.OK,
    "shutting-down": Health.PENDING,
    "stopping": Health.PENDING,
    "terminated": None,
    "stopped": None,
}


def instance_output_mapper(
    ctx: Context, client: Any, scope: str, params: dict, output: dict,
) -> list[Item]:
    items = []

    for reservation in output.get("Reservations", []):
        for instance in reservation.get("Instances", []):
            item = Item(
                type="ec2-instance",
                unique_attribute="InstanceId",
                scope=scope,
                attributes=to_attributes(instance, "Tags"),
                tags=tags_to_map(instance.get("Tags")),
                health=_INSTANCE_HEALTH.get(dig(instance, "State", "Name")),
            )

            if instance.get("ImageId"):
                item.link("ec2-image", QueryMethod.GET, instance["ImageId"], scope, in_=True)

            if instance.get("KeyName"):
                item.link("ec2-key-pair", QueryMethod.GET, instance["KeyName"], scope, in_=True)

            link_arn(item, "iam-instance-profile", dig(instance, "IamInstanceProfile", "Arn"))

            for nic in instance.get("NetworkInterfaces", []):
                if nic.get("NetworkInterfaceId"):
                    item.link(
                        "ec2-network-interface", QueryMethod.GET,
                        nic["NetworkInterfaceId"], scope, in_=True, out=True,
                    )
                for ip in nic.get("Ipv6Addresses", []):
                    if ip.get("Ipv6Address"):
                        item.link("ip", QueryMethod.GET, ip["Ipv6Address"], GLOBAL_SCOPE, in_=True, out=True)
                for ip in nic.get("PrivateIpAddresses", []):
                    if ip.get("PrivateIpAddress"):
                        item.link("ip", QueryMethod.GET, ip["PrivateIpAddress"], GLOBAL_SCOPE, in_=True, out=True)

            if instance.get("SubnetId"):
                item.link("ec2-subnet", QueryMethod.GET, instance["SubnetId"], scope, in_=True)

            if instance.get("VpcId"):
                item.link("ec2-vpc", QueryMethod.GET, instance["VpcId"], scope, in_=True)

            if instance.get("PublicDnsName"):
                item.link("dns", QueryMethod.SEARCH, instance["PublicDnsName"], GLOBAL_SCOPE, in_=True, out=True)

            if instance.get("PrivateDnsName"):
                item.link("dns", QueryMethod.SEARCH, instance["PrivateDnsName"], GLOBAL_SCOPE, in_=True, out=True)

            if instance.get("PublicIpAddress"):
                item.link("ip", QueryMethod.GET, instance["PublicIpAddress"], GLOBAL_SCOPE, in_=True, out=True)

            for group in instance.get("SecurityGroups", []):
                if group.get("GroupId"):
                    item.link("ec2-security-group", QueryMethod.GET, group["GroupId"], scope, in_=True)

            placement_group = dig(instance, "Placement", "GroupName")
            if placement_group:
                item.link("ec2-placement-group", QueryMethod.GET, placement_group, scope, in_=True)

            items.append(item)

    return items


def instance_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="ec2-instance",
        descriptive_name="EC2 Instance",
        get_description="Get an EC2 instance by ID",
        list_description="List all EC2 instances",
        search_description="Search EC2 instances by ARN",
        category="compute",
        potential_links=[
            "ec2-image", "ec2-key-pair", "iam-instance-profile",
            "ec2-network-interface", "ip", "ec2-subnet", "ec2-vpc", "dns",
            "ec2-security-group", "ec2-placement-group",
        ],
    )


def new_instance_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> DescribeOnlyAdapter:
    return DescribeOnlyAdapter(
        item_type="ec2-instance",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=instance_metadata(),
        describe_func=lambda c, params: c.describe_instances(**params),
        input_mapper_get=lambda scope, query: {"InstanceIds": [query]},
        input_mapper_list=lambda scope: {},
        paginator_builder=lambda c, params: TokenPaginator(c.describe_instances, params),
        output_mapper=instance_output_mapper,
    )


# ---------------------------------------------------------------------------
# ec2-vpc-peering-connection
# ---------------------------------------------------------------------------

_PEERING_HEALTH = {
    "initiating-request": Health.PENDING,
    "pending-acceptance": Health.PENDING,
    "active": Health.OK,
    "deleted": Health.UNKNOWN,
    "rejected": Health.ERROR,
    "failed": Health.ERROR,
    "expired": Health.ERROR,
    "provisioning": Health.PENDING,
    "deleting": Health.WARNING,
}


def vpc_peering_connection_output_mapper(
    ctx: Context, client: Any, scope: str, params: dict, output: dict,
) -> list[Item]:
    items = []

    for connection in output.get("VpcPeeringConnections", []):
        item = Item(
            type="ec2-vpc-peering-connection",
            unique_attribute="VpcPeeringConnectionId",
            scope=scope,
            attributes=to_attributes(connection, "Tags"),
            tags=tags_to_map(connection.get("Tags")),
            health=_PEERING_HEALTH.get(dig(connection, "Status", "Code")),
        )

        # Each side of the peering lives in its own account and region
        for side in ("AccepterVpcInfo", "RequesterVpcInfo"):
            info = connection.get(side) or {}
            if info.get("VpcId") and info.get("OwnerId") and info.get("Region"):
                item.link(
                    "ec2-vpc", QueryMethod.GET, info["VpcId"],
                    format_scope(info["OwnerId"], info["Region"]),
                    in_=True,
                )

        items.append(item)

    return items


def vpc_peering_connection_metadata() -> AdapterMetadata:
    return AdapterMetadata(
        type="ec2-vpc-peering-connection",
        descriptive_name="VPC Peering Connection",
        get_description="Get a VPC Peering Connection by ID",
        list_description="List all VPC Peering Connections",
        search_description="Search for VPC Peering Connections by ARN",
        category="network",
        potential_links=["ec2-vpc"],
    )


def new_vpc_peering_connection_adapter(
    client: Any, account_id: str, region: str, limit: Optional[LimitBucket] = None,
) -> DescribeOnlyAdapter:
    return DescribeOnlyAdapter(
        item_type="ec2-vpc-peering-connection",
        client=client,
        account_id=account_id,
        region=region,
        limit=limit,
        metadata=vpc_peering_connection_metadata(),
        describe_func=lambda c, params: c.describe_vpc_peering_connections(**params),
        input_mapper_get=lambda scope, query: {"VpcPeeringConnectionIds": [query]},
        input_mapper_list=lambda scope: {},
        paginator_builder=lambda c, params: TokenPaginator(
            c.describe_vpc_peering_connections, params,
        ),
        output_mapper=vpc_peering_connection_output_mapper,
    )
