"""Synchronous wrappers around MilvusNode for quick scripts/tests."""
import asyncio
from typing import Any, Callable

from .client import MilvusNode


def _run(coro_factory: Callable[..., Any], *args, **kwargs):
    return asyncio.run(coro_factory(*args, **kwargs))


def create_collection(client: MilvusNode, data: dict) -> dict:
    return _run(client.create_collection, data)


def has_collection(client: MilvusNode, data: dict) -> dict:
    return _run(client.has_collection, data)


def describe_collection(client: MilvusNode, data: dict) -> dict:
    return _run(client.describe_collection, data)


def count_collection(client: MilvusNode, data: dict) -> dict:
    return _run(client.count_collection, data)


def show_collections(client: MilvusNode) -> dict:
    return _run(client.show_collections)


def drop_collection(client: MilvusNode, data: dict) -> dict:
    return _run(client.drop_collection, data)


def create_partition(client: MilvusNode, data: dict) -> dict:
    return _run(client.create_partition, data)


def has_partition(client: MilvusNode, data: dict) -> dict:
    return _run(client.has_partition, data)


def show_partitions(client: MilvusNode, data: dict) -> dict:
    return _run(client.show_partitions, data)


def drop_partition(client: MilvusNode, data: dict) -> dict:
    return _run(client.drop_partition, data)


def insert(client: MilvusNode, data: dict) -> dict:
    return _run(client.insert, data)


def search(client: MilvusNode, data: dict) -> dict:
    return _run(client.search, data)


def flush(client: MilvusNode, data: dict) -> dict:
    return _run(client.flush, data)


def cmd(client: MilvusNode, data: dict) -> dict:
    return _run(client.cmd, data)


def server_version(client: MilvusNode) -> dict:
    return _run(client.server_version)
