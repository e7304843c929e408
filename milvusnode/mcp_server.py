"""Minimal MCP server exposing MilvusNode operations."""
import asyncio
import json
from importlib.metadata import version, PackageNotFoundError
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import ServerCapabilities, Tool, ToolsCapability, TextContent

from milvusnode.client import MilvusNode

# Honor .env when present so the server connects to the right Milvus instance.
load_dotenv()

server = Server("milvusnode-mcp")

_client: Optional[MilvusNode] = None


def _get_client() -> MilvusNode:
    global _client
    if _client is None:
        _client = MilvusNode()
    return _client


def _tool(name: str, description: str, schema: Dict[str, Any]) -> Tool:
    return Tool(name=name, description=description, inputSchema=schema)


def _object(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


_COLLECTION = {"collection_name": {"type": "string"}}
_PARTITION = {"collection_name": {"type": "string"}, "tag": {"type": "string"}}
_ROW_RECORDS = {
    "type": "array",
    "items": _object({"float_data": {"type": "array", "items": {"type": "number"}}}, ["float_data"]),
}

TOOLS: List[Tool] = [
    _tool("show_collections", "List collection names.", _object({}, [])),
    _tool("has_collection", "Check whether a collection exists.", _object(_COLLECTION, ["collection_name"])),
    _tool("describe_collection", "Fetch a collection schema.", _object(_COLLECTION, ["collection_name"])),
    _tool("count_collection", "Count rows in a collection.", _object(_COLLECTION, ["collection_name"])),
    _tool(
        "create_collection",
        "Create a collection. metric_type: 1=L2, 2=IP.",
        _object(
            {
                "collection_name": {"type": "string"},
                "dimension": {"type": "integer", "minimum": 1},
                "index_file_size": {"type": "integer", "minimum": 1, "default": 1024},
                "metric_type": {"type": "integer", "default": 1},
            },
            ["collection_name", "dimension"],
        ),
    ),
    _tool("drop_collection", "Drop a collection.", _object(_COLLECTION, ["collection_name"])),
    _tool("create_partition", "Create a partition tag.", _object(_PARTITION, ["collection_name", "tag"])),
    _tool("has_partition", "Check whether a partition exists.", _object(_PARTITION, ["collection_name", "tag"])),
    _tool("show_partitions", "List partitions of a collection.", _object(_COLLECTION, ["collection_name"])),
    _tool("drop_partition", "Drop a partition.", _object(_PARTITION, ["collection_name", "tag"])),
    _tool(
        "insert",
        "Insert float vectors; returns the assigned ids.",
        _object(
            {
                "collection_name": {"type": "string"},
                "row_record_array": _ROW_RECORDS,
                "row_id_array": {"type": "array", "items": {"type": "integer"}},
                "partition_tag": {"type": "string"},
            },
            ["collection_name", "row_record_array"],
        ),
    ),
    _tool(
        "search",
        "Top-k search for float query vectors.",
        _object(
            {
                "collection_name": {"type": "string"},
                "query_record_array": _ROW_RECORDS,
                "topk": {"type": "integer", "minimum": 1, "default": 10},
                "partition_tag_array": {"type": "array", "items": {"type": "string"}},
                "extra_params": {
                    "type": "array",
                    "items": _object({"key": {"type": "string"}, "value": {"type": "string"}}, ["key", "value"]),
                },
            },
            ["collection_name", "query_record_array"],
        ),
    ),
    _tool(
        "flush",
        "Persist buffered data for collections.",
        _object({"collection_name_array": {"type": "array", "items": {"type": "string"}}}, ["collection_name_array"]),
    ),
    _tool("server_version", "Report the Milvus server version.", _object({}, [])),
    _tool(
        "cmd",
        "Run a server command such as \"version\" or \"status\".",
        _object({"cmd": {"type": "string"}}, ["cmd"]),
    ),
]

_TOOL_NAMES = {tool.name for tool in TOOLS}
_NO_ARGUMENT_TOOLS = {"show_collections", "server_version"}


async def _dispatch_tool(name: str, args: Dict[str, Any]) -> Any:
    if name not in _TOOL_NAMES:
        raise ValueError(f"Unknown tool '{name}'")
    method = getattr(_get_client(), name)
    if name in _NO_ARGUMENT_TOOLS:
        return await method()
    if name == "create_collection":
        args = {"index_file_size": 1024, "metric_type": 1, **args}
    return await method(args)


@server.list_tools()
async def list_tools() -> List[Tool]:
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: Dict[str, Any]):
    try:
        result = await _dispatch_tool(name, arguments or {})
        text = json.dumps(result, indent=2, sort_keys=True, default=str)
    except Exception as exc:  # pragma: no cover - surfaced to MCP client
        text = f"Error: {exc}"
    return [TextContent(type="text", text=text)]


async def main():
    # Run MCP server over stdio
    try:
        server_version = version("milvusnode")
    except PackageNotFoundError:  # pragma: no cover - local dev
        server_version = "dev"

    init_opts = InitializationOptions(
        server_name="milvusnode-mcp",
        server_version=server_version,
        capabilities=ServerCapabilities(tools=ToolsCapability()),
    )

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, init_opts)
    finally:
        if _client is not None:
            _client.close()


if __name__ == "__main__":
    asyncio.run(main())
