"""Embedding, sanitizing and retrieval layer of the task pipeline."""

from taskrag.memory.embeddings import EmbeddingCodec, pack_vector, unpack_vector
from taskrag.memory.record_store import RecordStore, SQLRecordStore
from taskrag.memory.retrieval import MAX_RESULTS, RetrievalEngine
from taskrag.memory.sanitizer import sanitize_record, sanitize_string
from taskrag.memory.vector_index import LanceDBVectorIndex, VectorIndex


__all__ = [
    "EmbeddingCodec",
    "LanceDBVectorIndex",
    "MAX_RESULTS",
    "RecordStore",
    "RetrievalEngine",
    "SQLRecordStore",
    "VectorIndex",
    "pack_vector",
    "sanitize_record",
    "sanitize_string",
    "unpack_vector",
]
