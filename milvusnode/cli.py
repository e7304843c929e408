import argparse
import asyncio
import json
import sys
from pathlib import Path
import importlib.resources as pkg_resources

import grpc

from .client import MILVUS_ADDRESS, MilvusNode
from .types import is_success


def _print_err(msg: str) -> None:
    sys.stderr.write(msg + "\n")


def _print_reply(reply: dict) -> None:
    print(json.dumps(reply, indent=2, sort_keys=True))


async def _request(address: str, command: str, name: str | None) -> dict:
    async with MilvusNode(address) as milvus:
        if command == "version":
            return await milvus.server_version()
        if command == "status":
            return await milvus.server_status()
        if command == "collections":
            return await milvus.show_collections()
        if command == "describe":
            return await milvus.describe_collection({"collection_name": name})
        if command == "count":
            return await milvus.count_collection({"collection_name": name})
        if command == "partitions":
            return await milvus.show_partitions({"collection_name": name})
    raise ValueError(f"Unknown command '{command}'")


def cmd_request(address: str, command: str, name: str | None = None) -> int:
    try:
        reply = asyncio.run(_request(address, command, name))
    except grpc.RpcError as exc:
        _print_err(f"Cannot reach Milvus at {address}: {exc.code().name}: {exc.details()}")
        return 1
    _print_reply(reply)
    if not is_success(reply):
        status = reply.get("status", reply)
        _print_err(f"Milvus reported {status.get('error_code')}: {status.get('reason')}")
        return 1
    return 0


def copy_example() -> int:
    target = Path.cwd() / "demo.py"
    if target.exists():
        _print_err(f"{target} already exists; not overwriting.")
        return 1
    try:
        with pkg_resources.files("milvusnode.examples").joinpath("demo.py").open("rb") as src:
            target.write_bytes(src.read())
        print(f"Wrote example to {target}")
        return 0
    except FileNotFoundError:
        _print_err("Example file not found in package.")
        return 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="milvusnode", description="Talk to a Milvus server")
    p.add_argument(
        "--address",
        default=MILVUS_ADDRESS,
        help=f"Milvus host:port (default: {MILVUS_ADDRESS}, from MILVUS_ADDRESS/MILVUS_HOST/MILVUS_PORT)",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("version", help="Print the server version")
    sub.add_parser("status", help="Print the server status")
    sub.add_parser("collections", help="List collections")

    for command, help_text in (
        ("describe", "Describe a collection"),
        ("count", "Count rows in a collection"),
        ("partitions", "List partitions of a collection"),
    ):
        cmd = sub.add_parser(command, help=help_text)
        cmd.add_argument("name", help="Collection name")

    sub.add_parser("demo", help="Copy demo example into the current directory")
    sub.add_parser("mcp", help="Run the MCP stdio server")

    return p


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "mcp":
        from milvusnode.mcp_server import main as mcp_main

        asyncio.run(mcp_main())
        return

    if args.command == "demo":
        sys.exit(copy_example())

    rc = cmd_request(args.address, args.command, getattr(args, "name", None))
    sys.exit(rc)


if __name__ == "__main__":
    main()
