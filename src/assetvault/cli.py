"""assetvault CLI - Operator interface to a filesystem object store.

Usage:
    python -m assetvault [--uploads-dir DIR] [--visibility public|private]
                         [--caller ID] [--log-level LEVEL] <command> ...

Commands:
    put NAME [--file PATH] [--content-type TYPE]
    get NAME [--out PATH]
    rm NAME
    ls [--prefix PREFIX]
    stat NAME
    acl show NAME
    acl set NAME [--owner ID] [--grant GRANTEE=PERMISSION ...]
    acl grant NAME GRANTEE PERMISSION
    acl revoke NAME GRANTEE
    reconcile
    unique-name ORIGINAL_NAME
    search-paths
    serve [--host HOST] [--port PORT]

Without --caller, commands run as a trusted operator and skip ACL checks
(private reads still require READ). Results are printed as JSON.

Exit codes:
    0: Success
    1: Internal error (unexpected)
    2: Operation failed (not found, access denied, invalid name, I/O failure)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from assetvault.acl.policy import AclPolicy, Permission
from assetvault.config import UPLOADS_DIR_ENV, StorageSettings
from assetvault.storage.filesystem_store import FilesystemObjectStore
from assetvault.storage.models import ObjectMetadata, Visibility
from assetvault.storage.outcome import FailureKind, Outcome

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _error_result(code: str, message: str, **context: Any) -> dict[str, Any]:
    return {"error": {"code": code, "message": message, **context}}


def _report_failure(outcome: Outcome[Any]) -> int:
    _output_json(
        _error_result(
            str(outcome.failure),
            outcome.message,
            name=outcome.name,
            visibility=outcome.visibility,
        )
    )
    return 2


def _visibility(args: argparse.Namespace) -> Visibility:
    return Visibility(args.visibility) if args.visibility else Visibility.PUBLIC


def _metadata_to_dict(
    name: str, visibility: Visibility, record: ObjectMetadata
) -> dict[str, Any]:
    return {"name": name, "visibility": visibility.value, "metadata": record.to_dict()}


def build_store(args: argparse.Namespace) -> FilesystemObjectStore:
    """Build the store for one invocation from the environment and flags."""
    env = dict(os.environ)
    if args.uploads_dir:
        env[UPLOADS_DIR_ENV] = args.uploads_dir
    return FilesystemObjectStore(settings=StorageSettings.from_env(env))


def cmd_put(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    """Upload a file (or stdin) under NAME."""
    if args.file:
        data = Path(args.file).read_bytes()
    else:
        data = sys.stdin.buffer.read()

    visibility = _visibility(args)
    outcome = store.upload(
        args.name,
        data,
        visibility=visibility,
        content_type=args.content_type,
        caller_id=args.caller,
    )
    if not outcome.ok:
        return _report_failure(outcome)
    assert outcome.value is not None
    _output_json(_metadata_to_dict(args.name, visibility, outcome.value))
    return 0


def cmd_get(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    """Download NAME to --out, or raw to stdout."""
    visibility = _visibility(args)
    outcome = store.download(args.name, visibility=visibility, caller_id=args.caller)
    if not outcome.ok:
        return _report_failure(outcome)
    assert outcome.value is not None

    if args.out:
        Path(args.out).write_bytes(outcome.value)
        _output_json(
            {
                "name": args.name,
                "visibility": visibility.value,
                "size": len(outcome.value),
                "out": args.out,
            }
        )
    else:
        sys.stdout.buffer.write(outcome.value)
        sys.stdout.buffer.flush()
    return 0


def cmd_rm(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    visibility = _visibility(args)
    outcome = store.delete(args.name, visibility=visibility, caller_id=args.caller)
    if not outcome.ok:
        return _report_failure(outcome)
    _output_json({"deleted": args.name, "visibility": visibility.value})
    return 0


def cmd_ls(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    visibility = _visibility(args)
    _output_json(
        {
            "visibility": visibility.value,
            "prefix": args.prefix,
            "items": store.list_objects(args.prefix, visibility=visibility),
        }
    )
    return 0


def cmd_stat(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    visibility = _visibility(args)
    if visibility.is_private and args.caller is not None:
        denied = _check(store, args.name, visibility, args.caller, Permission.READ)
        if denied:
            return denied

    outcome = store.get_metadata(args.name, visibility=visibility)
    if not outcome.ok:
        return _report_failure(outcome)
    assert outcome.value is not None
    _output_json(_metadata_to_dict(args.name, visibility, outcome.value))
    return 0


def _check(
    store: FilesystemObjectStore,
    name: str,
    visibility: Visibility,
    caller_id: str,
    permission: Permission,
) -> int:
    """Return 2 after reporting the failure if ``caller_id`` may not proceed, else 0."""
    if not store.exists(name, visibility=visibility):
        return _report_failure(
            Outcome.fail(
                FailureKind.NOT_FOUND, "Object not found", name=name, visibility=visibility.value
            )
        )
    if not store.can_access(name, permission, visibility=visibility, caller_id=caller_id):
        return _report_failure(
            Outcome.fail(
                FailureKind.ACCESS_DENIED,
                f"Caller lacks {permission.value} permission",
                name=name,
                visibility=visibility.value,
            )
        )
    return 0


def _parse_grant(value: str) -> tuple[str, Permission]:
    grantee, sep, permission = value.rpartition("=")
    if not sep or not grantee:
        raise argparse.ArgumentTypeError(f"Expected GRANTEE=PERMISSION, got {value!r}")
    try:
        return grantee, Permission.parse(permission)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _acl_to_dict(name: str, visibility: Visibility, policy: AclPolicy) -> dict[str, Any]:
    return {"name": name, "visibility": visibility.value, "acl": policy.to_dict()}


def _store_acl(
    store: FilesystemObjectStore, args: argparse.Namespace, policy: AclPolicy
) -> int:
    visibility = _visibility(args)
    outcome = store.set_acl(args.name, policy, visibility=visibility, caller_id=args.caller)
    if not outcome.ok:
        return _report_failure(outcome)
    assert outcome.value is not None
    _output_json(_acl_to_dict(args.name, visibility, outcome.value))
    return 0


def cmd_acl(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    """Show or modify an object's ACL.

    ``grant`` and ``revoke`` edit the current policy; ``set`` replaces it.
    """
    visibility = _visibility(args)

    if args.acl_command == "show":
        if args.caller is not None:
            denied = _check(store, args.name, visibility, args.caller, Permission.ADMIN)
            if denied:
                return denied
        elif not store.exists(args.name, visibility=visibility):
            return _report_failure(
                Outcome.fail(
                    FailureKind.NOT_FOUND,
                    "Object not found",
                    name=args.name,
                    visibility=visibility.value,
                )
            )
        policy = store.get_acl(args.name, visibility=visibility)
        _output_json(_acl_to_dict(args.name, visibility, policy))
        return 0

    if args.acl_command == "set":
        return _store_acl(store, args, AclPolicy.build(args.owner, args.grants))

    current = store.get_acl(args.name, visibility=visibility)
    if args.acl_command == "grant":
        return _store_acl(store, args, current.with_grant(args.grantee, args.permission))
    return _store_acl(store, args, current.without_grant(args.grantee))


def cmd_reconcile(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    """Repair sidecars in one partition, or both when --visibility is omitted."""
    partitions = [Visibility(args.visibility)] if args.visibility else list(Visibility)
    reports = [store.reconcile(visibility=v).to_dict() for v in partitions]
    _output_json({"reports": reports})
    return 0 if not any(r["errors"] for r in reports) else 2


def cmd_unique_name(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    _output_json({"name": store.generate_unique_file_name(args.original_name)})
    return 0


def cmd_search_paths(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    _output_json({"search_paths": store.public_object_search_paths()})
    return 0


def cmd_serve(store: FilesystemObjectStore, args: argparse.Namespace) -> int:
    """Serve the HTTP API over this store's settings with uvicorn."""
    import uvicorn

    from assetvault.api.auth import build_group_directory, load_api_key_registry
    from assetvault.api.main import create_app

    registry = load_api_key_registry()
    app = create_app(
        store=FilesystemObjectStore(
            settings=store.settings, groups=build_group_directory(registry)
        ),
        api_key_registry=registry,
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


COMMAND_DISPATCH = {
    "put": cmd_put,
    "get": cmd_get,
    "rm": cmd_rm,
    "ls": cmd_ls,
    "stat": cmd_stat,
    "acl": cmd_acl,
    "reconcile": cmd_reconcile,
    "unique-name": cmd_unique_name,
    "search-paths": cmd_search_paths,
    "serve": cmd_serve,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="assetvault",
        description="assetvault - access-controlled object storage CLI",
    )
    parser.add_argument(
        "--uploads-dir",
        metavar="DIR",
        help="Storage root (default: $ASSETVAULT_UPLOADS_DIR or ./uploads)",
    )
    parser.add_argument(
        "--visibility",
        choices=[v.value for v in Visibility],
        default=None,
        help="Partition to operate on (default: public; reconcile scans both)",
    )
    parser.add_argument(
        "--caller",
        metavar="ID",
        default=None,
        help="Caller identity for ACL checks (default: trusted operator)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for stderr logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    put_parser = subparsers.add_parser("put", help="Upload an object")
    put_parser.add_argument("name")
    put_parser.add_argument(
        "--file", metavar="PATH", help="File to upload (reads stdin if omitted)"
    )
    put_parser.add_argument("--content-type", metavar="TYPE", default=None)

    get_parser = subparsers.add_parser("get", help="Download an object")
    get_parser.add_argument("name")
    get_parser.add_argument(
        "--out", metavar="PATH", help="Write bytes to PATH (writes stdout if omitted)"
    )

    rm_parser = subparsers.add_parser("rm", help="Delete an object")
    rm_parser.add_argument("name")

    ls_parser = subparsers.add_parser("ls", help="List objects")
    ls_parser.add_argument("--prefix", default="")

    stat_parser = subparsers.add_parser("stat", help="Show object metadata")
    stat_parser.add_argument("name")

    acl_parser = subparsers.add_parser("acl", help="Object ACL operations")
    acl_subparsers = acl_parser.add_subparsers(dest="acl_command", help="ACL subcommands")

    acl_show = acl_subparsers.add_parser("show", help="Show the ACL")
    acl_show.add_argument("name")

    acl_set = acl_subparsers.add_parser("set", help="Replace the ACL")
    acl_set.add_argument("name")
    acl_set.add_argument("--owner", metavar="ID", default=None)
    acl_set.add_argument(
        "--grant",
        dest="grants",
        metavar="GRANTEE=PERMISSION",
        type=_parse_grant,
        action="append",
        default=[],
        help="Grant to include (repeatable)",
    )

    acl_grant = acl_subparsers.add_parser("grant", help="Add or replace a grant")
    acl_grant.add_argument("name")
    acl_grant.add_argument("grantee")
    acl_grant.add_argument("permission", type=Permission.parse, choices=list(Permission))

    acl_revoke = acl_subparsers.add_parser("revoke", help="Remove a grantee's grants")
    acl_revoke.add_argument("name")
    acl_revoke.add_argument("grantee")

    subparsers.add_parser("reconcile", help="Repair metadata sidecars")

    unique_parser = subparsers.add_parser(
        "unique-name", help="Generate a collision-resistant object name"
    )
    unique_parser.add_argument("original_name")

    subparsers.add_parser("search-paths", help="Show public object search paths")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API (needs uvicorn)")
    serve_parser.add_argument("--host", default=DEFAULT_HOST, help="Host to bind to")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Internal error (unexpected)
        2: Operation failed
    """
    try:
        parser = create_parser()
        args = parser.parse_args(argv)

        logging.basicConfig(
            level=args.log_level,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        if args.command is None:
            parser.print_help()
            return 0

        if args.command == "acl" and getattr(args, "acl_command", None) is None:
            parser.parse_args(["acl", "--help"])
            return 0

        store = build_store(args)
        return COMMAND_DISPATCH[args.command](store, args)

    except Exception as e:
        logger.exception("Command failed")
        _output_json(_error_result("INTERNAL_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
