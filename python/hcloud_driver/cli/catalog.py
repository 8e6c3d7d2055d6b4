#!/usr/bin/env python3
"""
hcloud_driver/cli/catalog.py

Operator CLI for inspecting what the node driver would offer and write.

Usage examples:
  HCLOUD_DRIVER_CREDENTIAL_ID=cattle-global-data:cc-abcde \
  HCLOUD_DRIVER_HOST_URL=https://rancher.example.com \
      python -m hcloud_driver.cli.catalog list --kind server_type --location fsn1

  python -m hcloud_driver.cli.catalog load --credential-id cc-abcde

  python -m hcloud_driver.cli.catalog check-config --config-file node.yaml

check-config needs no network access: it decodes a YAML configuration record,
reports validity and prints the record as the driver would write it back.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, NoReturn

import aiofiles
import yaml

from hcloud_driver.client.hcloud_client import AsyncHCloudClient
from hcloud_driver.models.node_config import (
    DecodeFailure,
    decode_external_record,
    encode_node_configuration,
    validate_node_configuration,
)
from hcloud_driver.models.options import ResourceKind
from hcloud_driver.models.settings import DriverSettings
from hcloud_driver.services.aggregator import ResourceAggregator


def main() -> NoReturn:
    """
    Entry point for the catalog CLI.
    """
    parser = argparse.ArgumentParser(
        prog="hcloud_driver.cli.catalog",
        description="Inspect Hetzner Cloud options and node configuration records.",
    )
    parser.add_argument(
        "--verbose", action="store_true", default=False, help="Enable debug logging."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser(
        "list", help="Print the options of one resource kind as JSON."
    )
    list_parser.add_argument(
        "--kind", required=True, choices=[kind.value for kind in ResourceKind]
    )
    list_parser.add_argument(
        "--location", help="Filter (and price) server types for this location."
    )
    _add_connection_args(list_parser)
    list_parser.set_defaults(func=_list_kind)

    load_parser = subparsers.add_parser(
        "load", help="Load every option list concurrently and print counts per kind."
    )
    load_parser.add_argument("--location", help="Location filter for server types.")
    _add_connection_args(load_parser)
    load_parser.set_defaults(func=_load_catalog)

    check_parser = subparsers.add_parser(
        "check-config",
        help="Decode and validate a YAML configuration record, print the projected record.",
    )
    check_parser.add_argument("--config-file", required=True)
    check_parser.set_defaults(func=_check_config)

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        exit_code = asyncio.run(args.func(args))
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


def _add_connection_args(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "--credential-id",
        help="Credential reference (default: $HCLOUD_DRIVER_CREDENTIAL_ID).",
    )
    sub.add_argument("--host-url", help="Proxy host (default: $HCLOUD_DRIVER_HOST_URL).")
    sub.add_argument(
        "--no-verify-ssl",
        action="store_true",
        default=False,
        help="Disable SSL certificate verification (default: verify).",
    )


def _settings_from_args(args: argparse.Namespace) -> DriverSettings:
    overrides: Dict[str, Any] = {}
    if args.credential_id:
        overrides["credential_id"] = args.credential_id
    if args.host_url:
        overrides["host_url"] = args.host_url
    if args.no_verify_ssl:
        overrides["verify_ssl"] = False
    return DriverSettings(**overrides)


async def _list_kind(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    async with AsyncHCloudClient(settings) as client:
        aggregator = ResourceAggregator(client, settings.credential_id)
        options = await aggregator.fetch(ResourceKind(args.kind), args.location)

    print(json.dumps([opt.model_dump(exclude_none=True) for opt in options], indent=2))
    return 0 if options else 1


async def _load_catalog(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    async with AsyncHCloudClient(settings) as client:
        aggregator = ResourceAggregator(client, settings.credential_id)
        result = await aggregator.load_catalog(args.location)

    for kind in ResourceKind:
        print(f"{kind.value}: {len(result.catalog.options(kind))}")
    if result.all_failed:
        print("ERROR: no resources could be loaded.", file=sys.stderr)
        return 1
    if not result.has_locations:
        print("WARNING: no locations available.", file=sys.stderr)
    return 0


async def _check_config(args: argparse.Namespace) -> int:
    async with aiofiles.open(args.config_file, "r") as f:
        raw = yaml.safe_load(await f.read())

    decoded = decode_external_record(raw if raw is not None else {})
    if isinstance(decoded, DecodeFailure):
        for err in decoded.errors:
            print(f"DECODE ERROR: {err}", file=sys.stderr)
        return 1

    problems: List[str] = validate_node_configuration(decoded)
    print(f"valid: {not problems}")
    for problem in problems:
        print(f"  - {problem}")
    if problems:
        return 1

    projected = encode_node_configuration(decoded)
    print(yaml.safe_dump(projected, sort_keys=False), end="")
    return 0


if __name__ == "__main__":
    main()
