"""
ARN parsing and scope formatting.

A scope is ``{account}.{region}`` for regional resources, ``{account}`` for
account-global resources (IAM, CloudFront) and the literal ``"global"`` for
things that exist outside any account (IPs, DNS names).
"""

from __future__ import annotations

from dataclasses import dataclass

GLOBAL_SCOPE = "global"

_ARN_SECTIONS = 6


@dataclass(frozen=True)
class ARN:
    """A parsed Amazon Resource Name.

    ``resource`` is everything after the account ID and may itself contain
    ``:`` or ``/`` separators, e.g. ``function:my-fn:3`` or ``key/abc``.
    """

    partition: str
    service: str
    region: str
    account_id: str
    resource: str

    @property
    def resource_type(self) -> str:
        """The leading type segment of the resource, or "" if there is none."""
        idx = _first_separator(self.resource)
        if idx == -1:
            return ""
        return self.resource[:idx]

    @property
    def resource_id(self) -> str:
        """Everything after the type segment.

        May include further components such as a version
        (``layer:my-layer:3`` -> ``my-layer:3``).
        """
        idx = _first_separator(self.resource)
        if idx == -1:
            return self.resource
        return self.resource[idx + 1:]

    @property
    def scope(self) -> str:
        return format_scope(self.account_id, self.region)

    def __str__(self) -> str:
        return ":".join((
            "arn", self.partition, self.service, self.region,
            self.account_id, self.resource,
        ))


def _first_separator(resource: str) -> int:
    positions = [p for p in (resource.find(":"), resource.find("/")) if p != -1]
    return min(positions) if positions else -1


def parse_arn(value: str) -> ARN:
    """Parse *value* as an ARN.

    Raises ValueError (never anything else) when *value* does not have the
    six colon-delimited sections an ARN requires.  The region may be empty
    for global services.
    """
    if not isinstance(value, str):
        raise ValueError(f"ARN must be a string, got {type(value).__name__}")

    sections = value.split(":", _ARN_SECTIONS - 1)
    if len(sections) != _ARN_SECTIONS:
        raise ValueError(f"invalid ARN, not enough sections: {value!r}")
    if sections[0] != "arn":
        raise ValueError(f"invalid ARN, missing 'arn' prefix: {value!r}")

    _, partition, service, region, account_id, resource = sections
    if not partition or not service or not resource:
        raise ValueError(f"invalid ARN, empty partition/service/resource: {value!r}")

    return ARN(
        partition=partition,
        service=service,
        region=region,
        account_id=account_id,
        resource=resource,
    )


def format_scope(account_id: str, region: str) -> str:
    """Return ``account_id`` when *region* is empty, else ``account_id.region``."""
    if not region:
        return account_id
    return f"{account_id}.{region}"


def parse_scope(scope: str) -> tuple[str, str]:
    """Inverse of :func:`format_scope`.

    Returns ``(account_id, region)``; region is "" for account-only scopes.
    Raises ValueError when the scope has more than one dot.
    """
    sections = scope.split(".")
    if len(sections) == 1:
        if not sections[0]:
            raise ValueError("scope is empty")
        return sections[0], ""
    if len(sections) == 2:
        return sections[0], sections[1]
    raise ValueError(
        f"could not split scope {scope!r} into account and region, "
        f"expected 0 or 1 dots"
    )
