import math
import socket
import threading
import time
from concurrent import futures

import grpc
import pytest
import pytest_asyncio

# Allow tests to import project modules without installing a package
import sys
from pathlib import Path
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from milvusnode.client import MilvusNode
from milvusnode.protocol import load_protocol

pb, services = load_protocol()


def _status(code=None, reason: str = ""):
    return pb.Status(error_code=pb.SUCCESS if code is None else code, reason=reason)


class FakeMilvus(services.MilvusServiceServicer):
    """In-memory MilvusService good enough to exercise the client end to end."""

    def __init__(self) -> None:
        self.collections: dict[str, dict] = {}
        self.calls: dict[str, int] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def _count(self, name: str) -> None:
        with self._lock:
            self.calls[name] = self.calls.get(name, 0) + 1

    def _missing(self, name: str):
        return _status(pb.COLLECTION_NOT_EXISTS, f"Collection {name} does not exist")

    def Cmd(self, request, context):
        self._count("Cmd")
        if request.cmd.startswith("sleep:"):
            delay, _, reply = request.cmd[len("sleep:"):].partition(":")
            time.sleep(float(delay))
            return pb.StringReply(status=_status(), string_reply=reply)
        replies = {"version": "0.10.0", "status": "OK"}
        if request.cmd in replies:
            return pb.StringReply(status=_status(), string_reply=replies[request.cmd])
        return pb.StringReply(status=_status(pb.ILLEGAL_ARGUMENT, f"Unknown command {request.cmd!r}"))

    def CreateCollection(self, request, context):
        self._count("CreateCollection")
        with self._lock:
            if request.collection_name in self.collections:
                return _status(pb.ILLEGAL_COLLECTION_NAME, "Collection already exists")
            self.collections[request.collection_name] = {
                "dimension": request.dimension,
                "index_file_size": request.index_file_size,
                "metric_type": request.metric_type,
                "partitions": {"_default"},
                "rows": {},
            }
        return _status()

    def HasCollection(self, request, context):
        self._count("HasCollection")
        return pb.BoolReply(status=_status(), bool_reply=request.collection_name in self.collections)

    def DescribeCollection(self, request, context):
        self._count("DescribeCollection")
        coll = self.collections.get(request.collection_name)
        if coll is None:
            return pb.CollectionSchema(status=self._missing(request.collection_name))
        return pb.CollectionSchema(
            status=_status(),
            collection_name=request.collection_name,
            dimension=coll["dimension"],
            index_file_size=coll["index_file_size"],
            metric_type=coll["metric_type"],
        )

    def CountCollection(self, request, context):
        self._count("CountCollection")
        coll = self.collections.get(request.collection_name)
        if coll is None:
            return pb.CollectionRowCount(status=self._missing(request.collection_name))
        return pb.CollectionRowCount(status=_status(), collection_row_count=len(coll["rows"]))

    def ShowCollections(self, request, context):
        self._count("ShowCollections")
        return pb.CollectionNameList(status=_status(), collection_names=sorted(self.collections))

    def DropCollection(self, request, context):
        self._count("DropCollection")
        with self._lock:
            if self.collections.pop(request.collection_name, None) is None:
                return self._missing(request.collection_name)
        return _status()

    def CreatePartition(self, request, context):
        self._count("CreatePartition")
        coll = self.collections.get(request.collection_name)
        if coll is None:
            return self._missing(request.collection_name)
        coll["partitions"].add(request.tag)
        return _status()

    def HasPartition(self, request, context):
        self._count("HasPartition")
        coll = self.collections.get(request.collection_name)
        if coll is None:
            return pb.BoolReply(status=self._missing(request.collection_name))
        return pb.BoolReply(status=_status(), bool_reply=request.tag in coll["partitions"])

    def ShowPartitions(self, request, context):
        self._count("ShowPartitions")
        coll = self.collections.get(request.collection_name)
        if coll is None:
            return pb.PartitionList(status=self._missing(request.collection_name))
        return pb.PartitionList(status=_status(), partition_tag_array=sorted(coll["partitions"]))

    def DropPartition(self, request, context):
        self._count("DropPartition")
        coll = self.collections.get(request.collection_name)
        if coll is None:
            return self._missing(request.collection_name)
        coll["partitions"].discard(request.tag)
        return _status()

    def Insert(self, request, context):
        self._count("Insert")
        coll = self.collections.get(request.collection_name)
        if coll is None:
            return pb.VectorIds(status=self._missing(request.collection_name))
        ids = []
        with self._lock:
            for i, record in enumerate(request.row_record_array):
                if len(record.float_data) != coll["dimension"]:
                    return pb.VectorIds(status=_status(pb.ILLEGAL_ROWRECORD, "Dimension mismatch"))
                if request.row_id_array:
                    row_id = request.row_id_array[i]
                else:
                    row_id = self._next_id
                    self._next_id += 1
                coll["rows"][row_id] = list(record.float_data)
                ids.append(row_id)
        return pb.VectorIds(status=_status(), vector_id_array=ids)

    def Search(self, request, context):
        self._count("Search")
        coll = self.collections.get(request.collection_name)
        if coll is None:
            return pb.TopKQueryResult(status=self._missing(request.collection_name))
        ids, distances = [], []
        for query in request.query_record_array:
            scored = sorted(
                (math.dist(query.float_data, vec) ** 2, row_id) for row_id, vec in coll["rows"].items()
            )[: request.topk]
            ids.extend(row_id for _, row_id in scored)
            distances.extend(dist for dist, _ in scored)
        return pb.TopKQueryResult(
            status=_status(), row_num=len(request.query_record_array), ids=ids, distances=distances
        )

    def Flush(self, request, context):
        self._count("Flush")
        for name in request.collection_name_array:
            if name not in self.collections:
                return self._missing(name)
        return _status()


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def fake_milvus():
    return FakeMilvus()


@pytest.fixture
def milvus_address(fake_milvus):
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=8))
    services.add_MilvusServiceServicer_to_server(fake_milvus, server)
    port = server.add_insecure_port("127.0.0.1:0")
    server.start()
    yield f"127.0.0.1:{port}"
    server.stop(None)


@pytest.fixture
def unreachable_address():
    return f"127.0.0.1:{_free_port()}"


@pytest_asyncio.fixture
async def milvus_client(milvus_address):
    client = MilvusNode(milvus_address)
    yield client
    client.close()
