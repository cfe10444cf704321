# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from dutysync.app import (
    change_service_dependencies,
    create_service,
    escalation_policy_options,
    has_credential,
    list_entity_mappings,
    map_service,
    oncall_users,
    read_setting,
    read_settings,
    service_change_events,
    service_dependencies,
    service_incidents,
    service_metrics,
    service_standards,
    write_setting,
)
from dutysync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from dutysync.domain.model import ReconciledMapping, ServiceDependency

log = logging.getLogger(__name__)

MAPPING_COLUMNS = ("status", "service", "account", "entity", "integration key")


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile PagerDuty services with Backstage catalog entities"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("mappings", help="Show every service with its mapping status")

    mapping = subparsers.add_parser("map", help="Map a PagerDuty service to a catalog entity")
    mapping.add_argument("--service-id", type=str, required=True, help="PagerDuty service id")
    mapping.add_argument(
        "--entity-ref",
        type=str,
        required=True,
        help="Catalog entity reference, e.g. component:default/checkout (empty to unmap)",
    )
    mapping.add_argument("--integration-key", type=str, default="", help="Integration key")
    mapping.add_argument("--account", type=str, default="", help="PagerDuty account id")

    token = subparsers.add_parser("token", help="Check that a PagerDuty credential resolves")
    token.add_argument("--account", type=str, help="PagerDuty account id (defaults to default)")

    subparsers.add_parser("policies", help="List escalation policies across accounts")

    settings = subparsers.add_parser("settings", help="Read or write stored settings")
    settings_sub = settings.add_subparsers(dest="settings_command", required=True)
    settings_get = settings_sub.add_parser("get", help="Print one setting, or all of them")
    settings_get.add_argument("setting_id", nargs="?", help="Setting id")
    settings_set = settings_sub.add_parser("set", help="Store a setting value")
    settings_set.add_argument("setting_id", help="Setting id")
    settings_set.add_argument("value", help="Setting value")

    account = argparse.ArgumentParser(add_help=False)
    account.add_argument("--account", type=str, help="PagerDuty account id (defaults to default)")

    create = subparsers.add_parser(
        "create-service",
        parents=[account],
        help="Create a PagerDuty service with a Backstage integration",
    )
    create.add_argument("--name", type=str, required=True, help="Service name")
    create.add_argument("--description", type=str, required=True, help="Service description")
    create.add_argument(
        "--escalation-policy", type=str, required=True, help="Escalation policy id"
    )

    oncall = subparsers.add_parser("oncall", parents=[account], help="Show who is on call")
    oncall.add_argument(
        "--escalation-policy", type=str, required=True, help="Escalation policy id"
    )

    for command, help_text in (
        ("incidents", "Show open incidents of a service"),
        ("change-events", "Show recent change events of a service"),
        ("standards", "Show the standards score of a service"),
        ("metrics", "Show incident metrics of a service for the last 30 days"),
    ):
        service_command = subparsers.add_parser(command, parents=[account], help=help_text)
        service_command.add_argument("service_id", help="PagerDuty service id")

    dependencies = subparsers.add_parser(
        "dependencies", parents=[account], help="List or change service dependencies"
    )
    dependencies.add_argument("action", choices=("list", "add", "remove"))
    dependencies.add_argument("service_id", help="Dependent PagerDuty service id")
    dependencies.add_argument(
        "dependency_ids", nargs="*", help="Supporting service ids to add or remove"
    )

    return parser.parse_args(list(argv))


def _format_mappings(rows: Sequence[ReconciledMapping]) -> list[str]:
    table = [
        (
            row.status.value,
            row.service_name,
            row.account,
            row.entity_ref or "-",
            row.integration_key or "-",
        )
        for row in rows
    ]
    widths = [
        max([len(header), *(len(line[index]) for line in table)])
        for index, header in enumerate(MAPPING_COLUMNS)
    ]
    return [
        "  ".join(cell.ljust(width) for cell, width in zip(line, widths, strict=True)).rstrip()
        for line in (MAPPING_COLUMNS, *table)
    ]


async def _dependencies(args: argparse.Namespace) -> list[ServiceDependency]:
    if args.action == "list":
        return await service_dependencies(args.service_id, args.account)
    return await change_service_dependencies(
        args.service_id,
        args.dependency_ids,
        remove=args.action == "remove",
        account=args.account,
    )


def _format_dependencies(dependencies: Sequence[ServiceDependency]) -> list[str]:
    return [
        f"{dependency.dependent_service_id} -> {dependency.supporting_service_id}"
        for dependency in dependencies
    ]


def _run(args: argparse.Namespace) -> int:
    match args.command:
        case "mappings":
            for line in _format_mappings(asyncio.run(list_entity_mappings())):
                print(line)
        case "map":
            mapping_id = asyncio.run(
                map_service(
                    service_id=args.service_id,
                    entity_ref=args.entity_ref,
                    integration_key=args.integration_key,
                    account=args.account,
                )
            )
            log.info("Saved mapping %s", mapping_id)
        case "token":
            label = args.account or "default"
            if not asyncio.run(has_credential(args.account)):
                print(f"No valid PagerDuty credential for account '{label}'")
                return 1
            print(f"PagerDuty credential for account '{label}' resolves")
        case "policies":
            for option in asyncio.run(escalation_policy_options()):
                suffix = f" [{option.account}]" if option.account else ""
                print(f"{option.value}  {option.label}{suffix}")
        case "settings" if args.settings_command == "set":
            write_setting(args.setting_id, args.value)
        case "settings" if args.setting_id:
            setting = read_setting(args.setting_id)
            if setting is None:
                print(f"Setting '{args.setting_id}' is not set")
                return 1
            print(setting.value)
        case "settings":
            for setting in read_settings():
                print(f"{setting.id}={setting.value}")
        case "create-service":
            created = asyncio.run(
                create_service(
                    name=args.name,
                    description=args.description,
                    escalation_policy_id=args.escalation_policy,
                    account=args.account,
                )
            )
            print(f"{created.id}  {created.html_url}  integration key {created.integration_key}")
        case "oncall":
            for user in asyncio.run(oncall_users(args.escalation_policy, args.account)):
                print(f"{user.id}  {user.name}  {user.email}".rstrip())
        case "incidents":
            for incident in asyncio.run(service_incidents(args.service_id, args.account)):
                urgency = incident.urgency or "-"
                print(f"{incident.id}  {incident.status}  {urgency}  {incident.title}")
        case "change-events":
            for event in asyncio.run(service_change_events(args.service_id, args.account)):
                timestamp = event.timestamp.isoformat() if event.timestamp else "-"
                print(f"{timestamp}  {event.summary}")
        case "standards":
            standards = asyncio.run(service_standards(args.service_id, args.account))
            print(f"{standards.passing}/{standards.total} standards passing")
            for standard in standards.standards:
                print(f"[{'x' if standard.passed else ' '}] {standard.name}")
        case "metrics":
            for metrics in asyncio.run(service_metrics(args.service_id, args.account)):
                print(
                    f"{metrics.service_id}  incidents={metrics.total_incident_count}"
                    f"  high_urgency={metrics.total_high_urgency_incidents}"
                    f"  interruptions={metrics.total_interruptions}"
                )
        case "dependencies":
            for line in _format_dependencies(asyncio.run(_dependencies(args))):
                print(line)
        case _:
            raise ValueError(f"Unsupported command: {args.command}")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        exit_code = _run(parsed_args)
    except Exception:
        log.exception("Fatal error running '%s'", parsed_args.command)
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
