#!/usr/bin/env python3
"""
aws-discovery: query AWS resources as linked graph items.

Usage:
    aws-discovery types                      List supported item types
    aws-discovery list <type>                List every item of <type>
    aws-discovery get <type> <query>         Get one item by its unique attribute
    aws-discovery search <type> <query>      Search items (usually by ARN)

Options:
    --region <name>     Region to query (repeatable, overrides config)
    --profile <name>    AWS CLI profile
    --scope <scope>     Only query adapters serving this scope
    --timeout <secs>    Give up after this many seconds
    --verbose           Log debug output to stderr
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

import boto3
import yaml
from botocore.exceptions import BotoCoreError, ClientError

from adapters import Adapter, Context
from sdp import ErrorType, QueryError
from sources import all_metadata, build_adapters, find_adapters

# The directory where aws-discovery keeps its config.
CONFIG_DIR = Path.home() / ".aws-discovery"

_CONFIG_FILE = CONFIG_DIR / "config.yaml"

_KNOWN_COMMANDS = ("types", "list", "get", "search")

_DEFAULT_REGION = "us-east-1"

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def _config_path() -> Path:
    override = os.environ.get("AWS_DISCOVERY_CONFIG")
    if override:
        return Path(override).expanduser()
    return _CONFIG_FILE


def _load_config(path: Optional[Path] = None) -> dict:
    """Load the YAML config (profile, regions, rate limits, parallelism).

    A missing or unreadable file yields an empty config.
    """
    path = path or _config_path()
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except (yaml.YAMLError, OSError) as exc:
        logger.warning("Ignoring config file %s: %s", path, exc)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: expected a mapping", path)
        return {}
    return data


def _parse_options(args: list[str]) -> tuple[list[str], dict[str, Any]]:
    """Split *args* into positional arguments and ``--flag value`` options."""
    positional: list[str] = []
    options: dict[str, Any] = {"regions": []}

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--verbose":
            options["verbose"] = True
        elif arg in ("--region", "--profile", "--scope", "--timeout"):
            if i + 1 >= len(args):
                raise ValueError(f"{arg} requires a value")
            value = args[i + 1]
            if arg == "--region":
                options["regions"].append(value)
            elif arg == "--timeout":
                options["timeout"] = float(value)
            else:
                options[arg[2:]] = value
            i += 1
        elif arg.startswith("--"):
            raise ValueError(f"unknown option {arg}")
        else:
            positional.append(arg)
        i += 1

    return positional, options


def _merge_settings(cfg: dict, options: dict[str, Any]) -> dict[str, Any]:
    """Command-line options win over the config file."""
    regions = options.get("regions") or cfg.get("regions") or []
    if isinstance(regions, str):
        regions = [regions]

    return {
        "profile": options.get("profile") or cfg.get("profile"),
        "regions": list(regions),
        "timeout": options.get("timeout", cfg.get("timeout")),
        "max_parallel": cfg.get("max_parallel"),
        "rate_limits": cfg.get("rate_limits") or {},
        "scope": options.get("scope"),
    }


# ---------------------------------------------------------------------------
# AWS session
# ---------------------------------------------------------------------------

def _get_account_id(session: boto3.Session) -> str:
    """Return the AWS account ID via STS."""
    sts = session.client("sts")
    identity = sts.get_caller_identity()
    return identity["Account"]


def _session(profile: Optional[str], regions: list[str]) -> tuple[boto3.Session, list[str]]:
    session_kwargs: dict[str, str] = {}
    if profile:
        session_kwargs["profile_name"] = profile
    if regions:
        session_kwargs["region_name"] = regions[0]
    session = boto3.Session(**session_kwargs)
    return session, regions or [session.region_name or _DEFAULT_REGION]


def _adapters_for(settings: dict[str, Any], ctx: Context, item_type: str) -> list[Adapter]:
    session, regions = _session(settings["profile"], settings["regions"])
    account_id = _get_account_id(session)

    adapters = find_adapters(
        build_adapters(
            session, account_id, regions, ctx,
            rate_limits=settings["rate_limits"],
            max_parallel=settings["max_parallel"],
        ),
        item_type,
    )
    if not adapters:
        raise ValueError(f"unknown type {item_type!r}, see 'aws-discovery types'")

    scope = settings["scope"]
    if scope:
        adapters = [a for a in adapters if scope in a.scopes()]
        if not adapters:
            raise ValueError(f"no {item_type} adapter serves scope {scope!r}")
    return adapters


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Dispatch to the appropriate sub-command."""
    try:
        args, options = _parse_options(sys.argv[1:])
    except ValueError as exc:
        print(f"\033[1;31mError:\033[0m {exc}", file=sys.stderr)
        sys.exit(2)

    logging.basicConfig(
        level=logging.DEBUG if options.get("verbose") else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args or args[0] not in _KNOWN_COMMANDS:
        print(__doc__, file=sys.stderr)
        sys.exit(1)

    if args[0] == "types":
        _cmd_types()
        return

    expected = 2 if args[0] == "list" else 3
    if len(args) != expected:
        print(__doc__, file=sys.stderr)
        sys.exit(1)

    settings = _merge_settings(_load_config(), options)
    ctx = Context(timeout=settings["timeout"])

    try:
        if args[0] == "list":
            _cmd_list(settings, ctx, args[1])
        elif args[0] == "get":
            _cmd_get(settings, ctx, args[1], args[2])
        else:
            _cmd_search(settings, ctx, args[1], args[2])
    except (QueryError, ValueError, ClientError, BotoCoreError) as exc:
        print(f"\033[1;31mError:\033[0m {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        # Stops the rate-limit refill threads
        ctx.cancel()


# ---------------------------------------------------------------------------
# Sub-commands
# ---------------------------------------------------------------------------

def _print_items(items: list) -> None:
    print(json.dumps([item.to_dict() for item in items], indent=2, default=str))


def _cmd_types() -> None:
    """Print every supported type with what Get, List and Search do."""
    print(json.dumps([m.to_dict() for m in all_metadata()], indent=2))


def _cmd_list(settings: dict[str, Any], ctx: Context, item_type: str) -> None:
    items = []
    for adapter in _adapters_for(settings, ctx, item_type):
        scope = adapter.scopes()[0]
        items.extend(adapter.list(ctx, scope))
    _print_items(items)


def _cmd_get(settings: dict[str, Any], ctx: Context, item_type: str, query: str) -> None:
    """Get from each scope in turn, printing the first item found."""
    last_error: Optional[QueryError] = None

    for adapter in _adapters_for(settings, ctx, item_type):
        try:
            item = adapter.get(ctx, adapter.scopes()[0], query)
        except QueryError as exc:
            logger.debug("Get %s %s failed: %s", item_type, query, exc)
            last_error = exc
            continue
        _print_items([item])
        return

    if last_error is not None:
        raise last_error


def _cmd_search(settings: dict[str, Any], ctx: Context, item_type: str, query: str) -> None:
    """Search every scope.  NOSCOPE answers from other regions are ignored."""
    items = []
    errors: list[QueryError] = []

    for adapter in _adapters_for(settings, ctx, item_type):
        try:
            items.extend(adapter.search(ctx, adapter.scopes()[0], query))
        except QueryError as exc:
            if exc.error_type != ErrorType.NOSCOPE:
                errors.append(exc)

    if not items and errors:
        raise errors[0]
    _print_items(items)


if __name__ == "__main__":
    main()
