"""
Example usage of the Milvus client in a realistic flow:
1) create a collection and a partition
2) insert vectors and flush them
3) search by vector and by id
4) inspect server-reported status codes
5) clean up
"""
import asyncio
import random
import uuid

from milvusnode import ErrorCode, MetricType, MilvusNode, is_success

DIMENSION = 8


def make_vec(seed: float) -> list[float]:
    rng = random.Random(seed)
    return [rng.random() for _ in range(DIMENSION)]


async def main() -> None:
    collection = f"demo_{uuid.uuid4().hex}"
    async with MilvusNode() as milvus:
        version = await milvus.server_version()
        print("Server version:", version["string_reply"])

        status = await milvus.create_collection(
            {
                "collection_name": collection,
                "dimension": DIMENSION,
                "index_file_size": 1024,
                "metric_type": MetricType.L2,
            }
        )
        print("Create collection:", status)

        await milvus.create_partition({"collection_name": collection, "tag": "demo"})

        inserted = await milvus.insert(
            {
                "collection_name": collection,
                "partition_tag": "demo",
                "row_record_array": [{"float_data": make_vec(i)} for i in range(10)],
            }
        )
        ids = inserted["vector_id_array"]
        print("Inserted ids:", ids)

        await milvus.flush({"collection_name_array": [collection]})
        count = await milvus.count_collection({"collection_name": collection})
        print("Rows:", count["collection_row_count"])

        # Two searches in flight at once; each resolves on its own.
        by_vector, by_id = await asyncio.gather(
            milvus.search(
                {
                    "collection_name": collection,
                    "query_record_array": [{"float_data": make_vec(0)}],
                    "topk": 3,
                    "extra_params": [{"key": "params", "value": '{"nprobe": 16}'}],
                }
            ),
            milvus.search_by_id(
                {
                    "collection_name": collection,
                    "id_array": ids[:1],
                    "topk": 3,
                    "extra_params": [{"key": "params", "value": '{"nprobe": 16}'}],
                }
            ),
        )
        print("Nearest by vector:", list(zip(by_vector["ids"], by_vector["distances"])))
        print("Nearest by id:", list(zip(by_id["ids"], by_id["distances"])))

        # Server-side failures resolve normally; the status says what happened.
        missing = await milvus.describe_collection({"collection_name": f"missing_{collection}"})
        if not is_success(missing):
            print("Expected failure:", missing["status"]["error_code"], missing["status"]["reason"])

        dropped = await milvus.drop_collection({"collection_name": collection})
        print("Dropped:", dropped["error_code"] == ErrorCode.SUCCESS)


if __name__ == "__main__":
    asyncio.run(main())
