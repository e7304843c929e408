"""Awaitable MilvusService client: one method per remote operation."""
import logging
import os
from typing import Any, Optional, Sequence

from dotenv import load_dotenv

from .protocol import MilvusHandle, Operation, connect
from .rpc import invoke
from .types import (
    BoolReply,
    CollectionInfo,
    CollectionName,
    CollectionNameList,
    CollectionRowCount,
    CollectionSchema,
    Command,
    DeleteByIDParam,
    FlushParam,
    GetVectorIDsParam,
    IndexParam,
    InsertParam,
    PartitionList,
    PartitionParam,
    ReLoadSegmentsParam,
    SearchByIDParam,
    SearchInFilesParam,
    SearchParam,
    Status,
    StringReply,
    TopKQueryResult,
    VectorIds,
    VectorsData,
    VectorsIdentity,
)

__all__ = ["MILVUS_ADDRESS", "MilvusNode"]

load_dotenv()

logger = logging.getLogger(__name__)

# Env-driven connection details; MILVUS_ADDRESS wins over host/port.
MILVUS_HOST = os.getenv("MILVUS_HOST", "127.0.0.1")
MILVUS_PORT = int(os.getenv("MILVUS_PORT", "19530"))
MILVUS_ADDRESS = os.getenv("MILVUS_ADDRESS", f"{MILVUS_HOST}:{MILVUS_PORT}")
MAX_MESSAGE_LENGTH = int(os.getenv("MILVUS_MAX_MESSAGE_LENGTH", str(64 * 1024 * 1024)))


def _channel_options() -> list[tuple[str, Any]]:
    return [
        ("grpc.max_send_message_length", MAX_MESSAGE_LENGTH),
        ("grpc.max_receive_message_length", MAX_MESSAGE_LENGTH),
    ]


class MilvusNode:
    """
    Client for a Milvus server.

    Example:
        >>> async with MilvusNode("127.0.0.1:19530") as milvus:
        ...     await milvus.create_collection(
        ...         {"collection_name": "docs", "dimension": 128, "metric_type": 1, "index_file_size": 1024}
        ...     )
        ...     res = await milvus.has_collection({"collection_name": "docs"})
        ...     res["bool_reply"]
        True

    Transport failures raise ``grpc.RpcError``. Failures reported by the
    server come back inside the reply's status; check them with
    ``milvusnode.is_success``.
    """

    def __init__(
        self,
        address: Optional[str] = None,
        *,
        options: Optional[Sequence[tuple[str, Any]]] = None,
    ) -> None:
        self.address = address or MILVUS_ADDRESS
        self.handle: MilvusHandle = connect(
            self.address, options=_channel_options() if options is None else options
        )
        logger.debug("Opened channel to %s", self.address)

    def close(self) -> None:
        self.handle.close()
        logger.debug("Closed channel to %s", self.address)

    async def __aenter__(self) -> "MilvusNode":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # --------- Collections ---------

    async def create_collection(self, data: CollectionSchema) -> Status:
        """
        Create a collection.

        Args:
            data: collection_name, dimension, index_file_size, metric_type
        """
        return await invoke(self.handle, Operation.CREATE_COLLECTION, data)

    async def has_collection(self, data: CollectionName) -> BoolReply:
        return await invoke(self.handle, Operation.HAS_COLLECTION, data)

    async def describe_collection(self, data: CollectionName) -> CollectionSchema:
        """Schema of a collection; status carries COLLECTION_NOT_EXISTS when missing."""
        return await invoke(self.handle, Operation.DESCRIBE_COLLECTION, data)

    async def count_collection(self, data: CollectionName) -> CollectionRowCount:
        return await invoke(self.handle, Operation.COUNT_COLLECTION, data)

    async def show_collections(self) -> CollectionNameList:
        return await invoke(self.handle, Operation.SHOW_COLLECTIONS, {})

    async def show_collection_info(self, data: CollectionName) -> CollectionInfo:
        """Segment/partition statistics as a JSON document in ``json_info``."""
        return await invoke(self.handle, Operation.SHOW_COLLECTION_INFO, data)

    async def preload_collection(self, data: CollectionName) -> Status:
        """Load a collection into server memory ahead of searches."""
        return await invoke(self.handle, Operation.PRELOAD_COLLECTION, data)

    async def reload_segments(self, data: ReLoadSegmentsParam) -> Status:
        return await invoke(self.handle, Operation.RELOAD_SEGMENTS, data)

    async def drop_collection(self, data: CollectionName) -> Status:
        return await invoke(self.handle, Operation.DROP_COLLECTION, data)

    # --------- Indexes ---------

    async def create_index(self, data: IndexParam) -> Status:
        """
        Build an index on a collection. The server answers once the build
        finishes.

        Args:
            data: collection_name, index_type (see ``IndexType``), and
                extra_params such as ``[{"key": "params", "value": '{"nlist": 1024}'}]``
        """
        return await invoke(self.handle, Operation.CREATE_INDEX, data)

    async def describe_index(self, data: CollectionName) -> IndexParam:
        return await invoke(self.handle, Operation.DESCRIBE_INDEX, data)

    async def drop_index(self, data: CollectionName) -> Status:
        return await invoke(self.handle, Operation.DROP_INDEX, data)

    # --------- Partitions ---------

    async def create_partition(self, data: PartitionParam) -> Status:
        return await invoke(self.handle, Operation.CREATE_PARTITION, data)

    async def has_partition(self, data: PartitionParam) -> BoolReply:
        return await invoke(self.handle, Operation.HAS_PARTITION, data)

    async def show_partitions(self, data: CollectionName) -> PartitionList:
        return await invoke(self.handle, Operation.SHOW_PARTITIONS, data)

    async def drop_partition(self, data: PartitionParam) -> Status:
        return await invoke(self.handle, Operation.DROP_PARTITION, data)

    # --------- Vectors ---------

    async def insert(self, data: InsertParam) -> VectorIds:
        """
        Add vectors to a collection (optionally to one partition).

        Args:
            data: collection_name, row_record_array of ``{"float_data": [...]}``
                or ``{"binary_data": "<base64>"}``, optional row_id_array and
                partition_tag

        Returns:
            VectorIds with the ids assigned by the server, as strings.
        """
        return await invoke(self.handle, Operation.INSERT, data)

    async def get_vectors_by_id(self, data: VectorsIdentity) -> VectorsData:
        return await invoke(self.handle, Operation.GET_VECTORS_BY_ID, data)

    async def get_vector_ids(self, data: GetVectorIDsParam) -> VectorIds:
        """Ids stored in one segment of a collection."""
        return await invoke(self.handle, Operation.GET_VECTOR_IDS, data)

    async def search(self, data: SearchParam) -> TopKQueryResult:
        """
        Top-k search. ``ids``/``distances`` are flattened row-major,
        ``row_num`` rows of ``topk`` entries each.
        """
        return await invoke(self.handle, Operation.SEARCH, data)

    async def search_by_id(self, data: SearchByIDParam) -> TopKQueryResult:
        return await invoke(self.handle, Operation.SEARCH_BY_ID, data)

    async def search_in_files(self, data: SearchInFilesParam) -> TopKQueryResult:
        return await invoke(self.handle, Operation.SEARCH_IN_FILES, data)

    async def delete_by_ids(self, data: DeleteByIDParam) -> Status:
        return await invoke(self.handle, Operation.DELETE_BY_ID, data)

    # --------- Maintenance ---------

    async def flush(self, data: FlushParam) -> Status:
        """Persist buffered inserts/deletes for the named collections."""
        return await invoke(self.handle, Operation.FLUSH, data)

    async def compact(self, data: CollectionName) -> Status:
        return await invoke(self.handle, Operation.COMPACT, data)

    async def cmd(self, data: Command) -> StringReply:
        return await invoke(self.handle, Operation.CMD, data)

    async def server_version(self) -> StringReply:
        return await self.cmd({"cmd": "version"})

    async def server_status(self) -> StringReply:
        return await self.cmd({"cmd": "status"})
