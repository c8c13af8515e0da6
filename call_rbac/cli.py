"""Operator CLI for a call gate state file.

Usage:
    # Appoint alice as admin of group 7 (acting as root)
    call-rbac --state state.json grant 7 alice admin

    # As alice, make bob an executor
    call-rbac --state state.json --as alice grant 7 bob executor

    # Replace group 7's allowlist from a JSON file
    call-rbac --state state.json set-calls 7 calls.json

    # Inspect
    call-rbac --state state.json show 7
    call-rbac --state state.json allowed bob

calls.json holds a list of {"action": {...}, "identity": {...}} objects.
Execution is not available here; it needs a dispatcher (see the HTTP API).
"""

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from dotenv import load_dotenv

from call_rbac.calls.action import CallEntry
from call_rbac.core.config import Settings
from call_rbac.core.engine import CallRBAC
from call_rbac.core.logging_config import setup_logging
from call_rbac.permissions.origin import Origin, SuperAuthority
from call_rbac.permissions.roles import Role
from call_rbac.storage.state_file import StateFile
from call_rbac.utils.errors import CallRBACError, ConfigurationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="call-rbac", description="Manage access groups in a call gate state file."
    )
    parser.add_argument("--state", type=Path, help="State file (default: CALL_RBAC_STATE_PATH)")
    parser.add_argument(
        "--as",
        dest="actor",
        metavar="ACCOUNT",
        help="Act as this signed account instead of root",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)

    grant = sub.add_parser("grant", help="Grant a role")
    grant.add_argument("group", type=int)
    grant.add_argument("account")
    grant.add_argument("role", help="executor or admin")

    revoke = sub.add_parser("revoke", help="Revoke a role")
    revoke.add_argument("group", type=int)
    revoke.add_argument("account")

    set_calls = sub.add_parser("set-calls", help="Replace a group's allowed calls")
    set_calls.add_argument("group", type=int)
    set_calls.add_argument("file", type=Path, help="JSON list of {action, identity}")

    show = sub.add_parser("show", help="Show a group's roles and calls")
    show.add_argument("group", type=int)

    allowed = sub.add_parser("allowed", help="List the calls an account may execute")
    allowed.add_argument("account")

    return parser


def _load_entries(path: Path) -> list[CallEntry]:
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read calls file {path}: {e}") from e
    if not isinstance(data, list):
        raise ConfigurationError(f"Calls file {path} must hold a JSON list")
    try:
        return [CallEntry.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid call entry in {path}: {e}") from e


def _show_group(engine: CallRBAC, group: int) -> None:
    members = engine.group_members(group)
    calls = engine.get_calls(group)

    print(f"Group {group}")
    print(f"  Roles ({len(members)}):")
    for account, role in sorted(members.items()):
        print(f"    {role.name:<8} {account}")
    print(f"  Calls ({len(calls)}):")
    for entry in calls:
        print(f"    {entry.action} as {entry.identity}  args={entry.action.args}")


def run(args: argparse.Namespace, settings: Settings) -> None:
    state_path = args.state or settings.state_path
    if state_path is None:
        raise ConfigurationError("No state file given (use --state or CALL_RBAC_STATE_PATH)")

    engine = CallRBAC(
        super_authority=SuperAuthority(settings.super_accounts),
        max_calls=settings.max_calls,
        state_file=StateFile(state_path, settings.state_encryption_key),
    )
    origin = Origin.signed(args.actor) if args.actor else Origin.root()

    if args.command == "grant":
        try:
            role = Role.from_name(args.role)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        engine.grant_access(origin, args.group, args.account, role)
        print(f"Granted {role.name} in group {args.group} to {args.account}")

    elif args.command == "revoke":
        event = engine.revoke_access(origin, args.group, args.account)
        print(f"Revoked {event.role.name} in group {args.group} from {args.account}")

    elif args.command == "set-calls":
        entries = _load_entries(args.file)
        engine.set_calls(origin, args.group, entries)
        print(f"Group {args.group} now allows {len(engine.get_calls(args.group))} calls")

    elif args.command == "show":
        _show_group(engine, args.group)

    elif args.command == "allowed":
        actions = engine.get_allowed_calls(args.account)
        if not actions:
            print(f"{args.account} may not execute any calls.")
        for action in actions:
            print(f"{action}  args={action.args}")


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
        setup_logging(level=args.log_level, settings=settings)
        run(args, settings)
    except CallRBACError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
