"""Request/response shapes for MilvusService, as plain dicts.

Field names follow the schema. In replies, int64 fields arrive as decimal
strings and enum fields as their names.
"""
from enum import Enum, IntEnum
from typing import Any, Mapping, TypedDict

__all__ = [
    "BoolReply",
    "CollectionInfo",
    "CollectionName",
    "CollectionNameList",
    "CollectionRowCount",
    "CollectionSchema",
    "Command",
    "DeleteByIDParam",
    "ErrorCode",
    "FlushParam",
    "GetVectorIDsParam",
    "IndexParam",
    "IndexType",
    "InsertParam",
    "KeyValuePair",
    "MetricType",
    "PartitionList",
    "PartitionParam",
    "ReLoadSegmentsParam",
    "RowRecord",
    "SearchByIDParam",
    "SearchInFilesParam",
    "SearchParam",
    "Status",
    "StringReply",
    "TopKQueryResult",
    "VectorIds",
    "VectorsData",
    "VectorsIdentity",
    "is_success",
]


class ErrorCode(str, Enum):
    SUCCESS = "SUCCESS"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
    CONNECT_FAILED = "CONNECT_FAILED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    COLLECTION_NOT_EXISTS = "COLLECTION_NOT_EXISTS"
    ILLEGAL_ARGUMENT = "ILLEGAL_ARGUMENT"
    ILLEGAL_DIMENSION = "ILLEGAL_DIMENSION"
    ILLEGAL_INDEX_TYPE = "ILLEGAL_INDEX_TYPE"
    ILLEGAL_COLLECTION_NAME = "ILLEGAL_COLLECTION_NAME"
    ILLEGAL_TOPK = "ILLEGAL_TOPK"
    ILLEGAL_ROWRECORD = "ILLEGAL_ROWRECORD"
    ILLEGAL_VECTOR_ID = "ILLEGAL_VECTOR_ID"
    ILLEGAL_SEARCH_RESULT = "ILLEGAL_SEARCH_RESULT"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    META_FAILED = "META_FAILED"
    CACHE_FAILED = "CACHE_FAILED"
    CANNOT_CREATE_FOLDER = "CANNOT_CREATE_FOLDER"
    CANNOT_CREATE_FILE = "CANNOT_CREATE_FILE"
    CANNOT_DELETE_FOLDER = "CANNOT_DELETE_FOLDER"
    CANNOT_DELETE_FILE = "CANNOT_DELETE_FILE"
    BUILD_INDEX_ERROR = "BUILD_INDEX_ERROR"
    ILLEGAL_NLIST = "ILLEGAL_NLIST"
    ILLEGAL_METRIC_TYPE = "ILLEGAL_METRIC_TYPE"
    OUT_OF_MEMORY = "OUT_OF_MEMORY"


class MetricType(IntEnum):
    L2 = 1
    IP = 2
    HAMMING = 3
    JACCARD = 4
    TANIMOTO = 5
    SUBSTRUCTURE = 6
    SUPERSTRUCTURE = 7


class IndexType(IntEnum):
    FLAT = 1
    IVF_FLAT = 2
    IVF_SQ8 = 3
    RNSG = 4
    IVF_SQ8H = 5
    IVF_PQ = 6
    HNSW = 11
    ANNOY = 12


# --------- Shared ---------


class Status(TypedDict, total=False):
    error_code: str
    reason: str


class KeyValuePair(TypedDict):
    key: str
    value: str


class RowRecord(TypedDict, total=False):
    float_data: list[float]
    binary_data: str  # base64


# --------- Requests ---------


class CollectionName(TypedDict):
    collection_name: str


class CollectionSchema(TypedDict, total=False):
    status: Status
    collection_name: str
    dimension: int | str
    index_file_size: int | str
    metric_type: int
    extra_params: list[KeyValuePair]


class PartitionParam(TypedDict):
    collection_name: str
    tag: str


class InsertParam(TypedDict, total=False):
    collection_name: str
    row_record_array: list[RowRecord]
    row_id_array: list[int | str]
    partition_tag: str
    extra_params: list[KeyValuePair]


class SearchParam(TypedDict, total=False):
    collection_name: str
    partition_tag_array: list[str]
    query_record_array: list[RowRecord]
    topk: int | str
    extra_params: list[KeyValuePair]


class SearchInFilesParam(TypedDict, total=False):
    file_id_array: list[str]
    search_param: SearchParam


class SearchByIDParam(TypedDict, total=False):
    collection_name: str
    partition_tag_array: list[str]
    id_array: list[int | str]
    topk: int | str
    extra_params: list[KeyValuePair]


class ReLoadSegmentsParam(TypedDict):
    collection_name: str
    segment_id_array: list[str]


class Command(TypedDict, total=False):
    cmd: str


class IndexParam(TypedDict, total=False):
    status: Status
    collection_name: str
    index_type: int
    extra_params: list[KeyValuePair]


class FlushParam(TypedDict):
    collection_name_array: list[str]


class DeleteByIDParam(TypedDict):
    collection_name: str
    id_array: list[int | str]


class VectorsIdentity(TypedDict, total=False):
    collection_name: str
    partition_tag_array: list[str]
    id_array: list[int | str]


class GetVectorIDsParam(TypedDict):
    collection_name: str
    segment_name: str


# --------- Replies ---------


class BoolReply(TypedDict, total=False):
    status: Status
    bool_reply: bool


class StringReply(TypedDict, total=False):
    status: Status
    string_reply: str


class CollectionNameList(TypedDict, total=False):
    status: Status
    collection_names: list[str]


class CollectionRowCount(TypedDict, total=False):
    status: Status
    collection_row_count: str


class CollectionInfo(TypedDict, total=False):
    status: Status
    json_info: str


class PartitionList(TypedDict, total=False):
    status: Status
    partition_tag_array: list[str]


class VectorIds(TypedDict, total=False):
    status: Status
    vector_id_array: list[str]


class VectorsData(TypedDict, total=False):
    status: Status
    vectors_data: list[RowRecord]


class TopKQueryResult(TypedDict, total=False):
    status: Status
    row_num: str
    ids: list[str]
    distances: list[float]


def is_success(reply: Mapping[str, Any]) -> bool:
    """
    True if a Status, or a reply carrying one, reports SUCCESS.

    An absent status decodes as the proto3 default, which is SUCCESS.
    """
    status = reply.get("status", reply)
    return status.get("error_code", ErrorCode.SUCCESS.value) == ErrorCode.SUCCESS
