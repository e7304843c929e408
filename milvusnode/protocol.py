"""Schema loading and the client handle bound to MilvusService.

The schema ships as ``proto/milvus.proto`` and is compiled at runtime with
grpcio-tools, so no generated ``_pb2`` modules are checked in.
"""
import contextlib
import functools
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence

import grpc
from google.protobuf import json_format

__all__ = ["MilvusHandle", "Operation", "connect", "load_protocol"]

PROTO_DIR = Path(__file__).resolve().parent / "proto"
PROTO_FILE = "milvus.proto"
SERVICE_NAME = "MilvusService"
SERVICE_PATH = "milvus.grpc.MilvusService"


class Operation(str, Enum):
    """Remote operations called by the SDK, named as in the schema."""

    CREATE_COLLECTION = "CreateCollection"
    HAS_COLLECTION = "HasCollection"
    DESCRIBE_COLLECTION = "DescribeCollection"
    COUNT_COLLECTION = "CountCollection"
    SHOW_COLLECTIONS = "ShowCollections"
    SHOW_COLLECTION_INFO = "ShowCollectionInfo"
    DROP_COLLECTION = "DropCollection"
    CREATE_INDEX = "CreateIndex"
    DESCRIBE_INDEX = "DescribeIndex"
    DROP_INDEX = "DropIndex"
    CREATE_PARTITION = "CreatePartition"
    HAS_PARTITION = "HasPartition"
    SHOW_PARTITIONS = "ShowPartitions"
    DROP_PARTITION = "DropPartition"
    INSERT = "Insert"
    GET_VECTORS_BY_ID = "GetVectorsByID"
    GET_VECTOR_IDS = "GetVectorIDs"
    SEARCH = "Search"
    SEARCH_BY_ID = "SearchByID"
    SEARCH_IN_FILES = "SearchInFiles"
    CMD = "Cmd"
    DELETE_BY_ID = "DeleteByID"
    PRELOAD_COLLECTION = "PreloadCollection"
    RELOAD_SEGMENTS = "ReloadSegments"
    FLUSH = "Flush"
    COMPACT = "Compact"

    def __str__(self) -> str:
        return self.value


@contextlib.contextmanager
def _proto_search_path(directory: Path):
    """grpcio-tools resolves .proto files (and their imports) against sys.path."""
    entry = str(directory)
    sys.path.insert(0, entry)
    try:
        yield
    finally:
        sys.path.remove(entry)


@functools.lru_cache(maxsize=None)
def load_protocol() -> tuple[Any, Any]:
    """Compile milvus.proto once per process; returns (protos, services) modules."""
    with _proto_search_path(PROTO_DIR):
        return grpc.protos_and_services(PROTO_FILE)


def encode_request(message_cls: Any, payload: Any) -> bytes:
    message = json_format.ParseDict(dict(payload or {}), message_cls())
    return message.SerializeToString()


def decode_response(message_cls: Any, data: bytes) -> dict:
    """
    Render a reply the way callers consume it: schema field names,
    enum names, int64 as decimal strings, and defaulted scalar fields kept.
    """
    message = message_cls.FromString(data)
    return json_format.MessageToDict(
        message,
        preserving_proto_field_name=True,
        always_print_fields_with_no_presence=True,
    )


class MilvusHandle:
    """
    Connected handle to MilvusService.

    Every ``Operation`` becomes an attribute named after it (``handle.Insert``)
    holding a unary-unary multicallable that takes a dict and yields a dict.
    """

    def __init__(self, channel: grpc.Channel, protos: Any = None) -> None:
        if protos is None:
            protos, _ = load_protocol()
        service = protos.DESCRIPTOR.services_by_name.get(SERVICE_NAME)
        if service is None:
            raise ValueError(f"Schema does not define service '{SERVICE_NAME}'")
        self._channel = channel
        for operation in Operation:
            method = service.methods_by_name.get(operation.value)
            if method is None:
                raise ValueError(f"Schema does not define operation '{operation.value}'")
            request_cls = getattr(protos, method.input_type.name)
            response_cls = getattr(protos, method.output_type.name)
            setattr(
                self,
                operation.value,
                channel.unary_unary(
                    f"/{SERVICE_PATH}/{operation.value}",
                    request_serializer=functools.partial(encode_request, request_cls),
                    response_deserializer=functools.partial(decode_response, response_cls),
                ),
            )

    def close(self) -> None:
        self._channel.close()


def connect(address: str, options: Optional[Sequence[tuple[str, Any]]] = None) -> MilvusHandle:
    """Open an insecure channel to ``host:port`` and bind the service to it."""
    channel = grpc.insecure_channel(address, options=list(options or []))
    return MilvusHandle(channel)
