"""
OceanBase VectorStore - ANN search over a native VECTOR column.

Combines:
- Storage: one row per document (content, VECTOR embedding, namespace, JSON metadata)
- Dense search: OceanBase HNSW vector index queried with APPROXIMATE LIMIT
- RAG: question answering over the retrieved context with a chat model
"""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable, Optional, Sequence, Union

import structlog
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.runnables import RunnableConfig
from langchain_core.vectorstores import VectorStore
from sqlalchemy import RowMapping

from .config import (
    HNSWIndexConfig,
    HNSWSearchConfig,
    TableConfig,
)
from .data import Row
from .engine import OceanBaseEngine
from .prompts import CONTEXT_SEPARATOR, HYDE_PROMPT, RAG_PROMPT
from .types import DistanceStrategy

logger = structlog.get_logger("vectorstores.obvec_search")


class OceanBaseVectorStore(VectorStore):
    """LangChain VectorStore backed by an OceanBase VECTOR column.

    Delegates database operations to OceanBaseEngine.

    Provides:
    - Insert / upsert / delete of embedded texts, scoped to an optional namespace
    - Approximate nearest neighbor search (HNSW index, APPROXIMATE LIMIT)
    - Default schema management (table + vector index)
    - `ask`: retrieval-augmented answers from a chat model
    """

    __create_key = object()

    def __init__(
        self,
        key: object,
        engine: OceanBaseEngine,
        embedding_service: Embeddings,
        table_config: TableConfig,
        *,
        namespace: Optional[str] = None,
        distance_strategy: Union[DistanceStrategy, str] = DistanceStrategy.COSINE_DISTANCE,
        llm: Optional[BaseChatModel] = None,
        k: int = 4,
        ef_search: Optional[int] = None,
        index_config: Optional[HNSWIndexConfig] = None,
    ):
        """OceanBaseVectorStore constructor.

        Args:
            key: Prevent direct constructor usage.
            engine: OceanBaseEngine instance.
            embedding_service: Text embedding model.
            table_config: Table schema configuration.
            namespace: Scope inserts and searches to rows with this namespace.
            distance_strategy: Distance function for search and index.
                Default: cosine_distance.
            llm: Chat model used by `ask` and `similarity_search_with_hyde`.
            k: Number of results to return. Default: 4.
            ef_search: HNSW candidate list size. Server default if None.
            index_config: HNSW build parameters for `create_default_schema`.
        """
        if key != OceanBaseVectorStore.__create_key:
            raise Exception(
                "Only create class through 'create' or 'from_texts'!"
            )

        strategy = DistanceStrategy(distance_strategy)

        self.engine = engine
        self.embedding_service = embedding_service
        self.table_config = table_config
        self.namespace = namespace
        self.distance_strategy = strategy
        self.llm = llm
        self.k = k
        self.search_config = HNSWSearchConfig(
            k=k, ef_search=ef_search, distance_strategy=strategy
        )
        self.index_config = (index_config or HNSWIndexConfig()).model_copy(
            update={"distance_strategy": strategy}
        )

    @classmethod
    def create(
        cls,
        engine: OceanBaseEngine,
        embedding_service: Embeddings,
        table_config: TableConfig,
        **kwargs: Any,
    ) -> OceanBaseVectorStore:
        """Create an OceanBaseVectorStore instance.

        Validates that the table exists with required columns.
        """
        tc = table_config
        columns = engine.get_columns(tc)

        for column in tc.required_columns:
            if column not in columns:
                raise ValueError(
                    f"Column '{column}' does not exist in table '{tc.table_name}'."
                )

        return cls(
            cls.__create_key,
            engine,
            embedding_service,
            table_config,
            **kwargs,
        )

    @property
    def embeddings(self) -> Embeddings:
        return self.embedding_service

    # ==========================================
    # Helpers
    # ==========================================

    def _row_to_document(
        self,
        row: dict | RowMapping,
    ) -> tuple[Document, float]:
        """Convert a database row to (Document, distance)."""
        tc = self.table_config
        metadata = row.get(tc.metadata_column, {})
        if metadata is None:
            metadata = {}
        if isinstance(metadata, (str, bytes)):
            metadata = json.loads(metadata) if metadata else {}

        doc = Document(
            page_content=row[tc.content_column],
            metadata=metadata,
            id=str(row[tc.id_column]),
        )
        return doc, float(row.get("distance", 0.0))

    def _require_llm(self) -> BaseChatModel:
        if self.llm is None:
            raise ValueError("A chat model (`llm`) is required for this operation.")
        return self.llm

    # ==========================================
    # Schema Management
    # ==========================================

    def create_default_schema(self) -> None:
        """Create the table and its HNSW vector index.

        Safe to call repeatedly: an existing table or index is left as is.
        """
        self.engine.init_table(self.table_config)
        self.engine.create_hnsw_index(self.table_config, self.index_config)

    def destroy_default_schema(self) -> None:
        """Drop the table if it exists."""
        self.engine.drop_table(self.table_config)

    # ==========================================
    # Write Methods
    # ==========================================

    def add_texts(
        self,
        texts: Iterable[str],
        metadatas: Optional[list[dict]] = None,
        *,
        ids: Optional[Sequence[Optional[int | str]]] = None,
        **kwargs: Any,
    ) -> list[str]:
        """Embed texts and add them to the table.

        Without ids every row gets an auto-assigned id; with ids each row is
        upserted by id. Returns string ids in input order.
        """
        texts_list = list(texts)
        if ids:
            return self.upsert_texts(texts_list, ids, metadatas=metadatas)
        return self._write_texts(texts_list, [None] * len(texts_list), metadatas)

    def upsert_texts(
        self,
        texts: Iterable[str],
        ids: Sequence[Optional[int | str]],
        metadatas: Optional[list[dict]] = None,
    ) -> list[str]:
        """Insert or overwrite rows by id (REPLACE INTO)."""
        texts_list = list(texts)
        if len(ids) != len(texts_list):
            raise ValueError(
                f"Got {len(ids)} ids for {len(texts_list)} texts."
            )
        return self._write_texts(texts_list, list(ids), metadatas)

    def update_texts(
        self,
        texts: Iterable[str],
        ids: Sequence[Optional[int | str]],
        metadatas: Optional[list[dict]] = None,
    ) -> list[str]:
        """Overwrite existing rows by id."""
        return self.upsert_texts(texts, ids, metadatas=metadatas)

    def _write_texts(
        self,
        texts: list[str],
        ids: list[Optional[int | str]],
        metadatas: Optional[list[dict]],
    ) -> list[str]:
        if not texts:
            return []
        if not metadatas:
            metadatas = [{} for _ in texts]
        elif len(metadatas) != len(texts):
            raise ValueError(
                f"Got {len(metadatas)} metadatas for {len(texts)} texts."
            )

        embeddings = self.embedding_service.embed_documents(texts)

        # One statement per row, each committed on its own.
        written: list[int] = []
        for id_, txt, emb, meta in zip(ids, texts, embeddings, metadatas):
            row = Row(
                id=id_,
                content=txt,
                embedding=emb,
                namespace=self.namespace,
                metadata=meta,
            )
            if row.id is None:
                written.append(self.engine.insert_row(self.table_config, row))
            else:
                written.append(self.engine.replace_row(self.table_config, row))

        logger.debug(
            "Wrote texts",
            table=self.table_config.table_name,
            count=len(written),
            namespace=self.namespace,
        )
        return [str(id_) for id_ in written]

    def remove_texts(self, ids: Sequence[int | str]) -> int:
        """Delete rows by id. Not scoped to the namespace.

        Returns the number of rows deleted.
        """
        return self.engine.delete_rows(
            self.table_config, [int(id_) for id_ in ids]
        )

    def delete(
        self,
        ids: Optional[Sequence[int | str]] = None,
        **kwargs: Any,
    ) -> Optional[bool]:
        """Delete records by IDs."""
        if not ids:
            return False
        return self.remove_texts(ids) > 0

    def get_by_ids(self, ids: Sequence[int | str], /) -> list[Document]:
        """Get documents by IDs."""
        rows = self.engine.get_rows(
            self.table_config,
            [int(id_) for id_ in ids],
            namespace=self.namespace,
        )
        return [
            Document(page_content=row.content, metadata=row.metadata, id=str(row.id))
            for row in rows
        ]

    # ==========================================
    # Search Methods
    # ==========================================

    def similarity_search(
        self,
        query: str,
        k: Optional[int] = None,
        **kwargs: Any,
    ) -> list[Document]:
        """Return docs selected by similarity search on query."""
        embedding = self.embedding_service.embed_query(query)
        return self.similarity_search_by_vector(embedding, k=k, **kwargs)

    def similarity_search_with_score(
        self,
        query: str,
        k: Optional[int] = None,
        **kwargs: Any,
    ) -> list[tuple[Document, float]]:
        """Return docs and distances selected by similarity search."""
        embedding = self.embedding_service.embed_query(query)
        return self.similarity_search_with_score_by_vector(embedding, k=k, **kwargs)

    def similarity_search_by_vector(
        self,
        embedding: list[float],
        k: Optional[int] = None,
        **kwargs: Any,
    ) -> list[Document]:
        """Return docs selected by vector similarity."""
        docs_and_scores = self.similarity_search_with_score_by_vector(
            embedding, k=k, **kwargs,
        )
        return [doc for doc, _ in docs_and_scores]

    def similarity_search_with_score_by_vector(
        self,
        embedding: list[float],
        k: Optional[int] = None,
        **kwargs: Any,
    ) -> list[tuple[Document, float]]:
        """Return docs and distances, nearest first."""
        final_k = k if k is not None else self.k
        config = self.search_config.model_copy(update={"k": final_k})
        results = self.engine.query_hnsw(
            self.table_config, embedding, config, namespace=self.namespace,
        )
        return [self._row_to_document(row) for row in results]

    def similarity_search_with_hyde(
        self,
        query: str,
        k: Optional[int] = None,
        **kwargs: Any,
    ) -> list[Document]:
        """Search with a hypothetical answer written by the chat model."""
        chain = HYDE_PROMPT | self._require_llm() | StrOutputParser()
        passage = chain.invoke({"question": query})
        return self.similarity_search(passage, k=k, **kwargs)

    @staticmethod
    def _inner_product_relevance_score_fn(score: float) -> float:
        """Map a raw inner product of unit vectors from [-1, 1] to [0, 1]."""
        return (1.0 + score) / 2.0

    def _select_relevance_score_fn(self) -> Callable[[float], float]:
        if self.distance_strategy == DistanceStrategy.COSINE_DISTANCE:
            return self._cosine_relevance_score_fn
        elif self.distance_strategy == DistanceStrategy.EUCLIDEAN:
            return self._euclidean_relevance_score_fn
        elif self.distance_strategy == DistanceStrategy.INNER_PRODUCT:
            return self._inner_product_relevance_score_fn
        # negative_inner_product already returns -<a, b>
        return self._max_inner_product_relevance_score_fn

    # ==========================================
    # RAG
    # ==========================================

    def ask(
        self,
        question: str,
        k: Optional[int] = None,
        config: Optional[RunnableConfig] = None,
    ) -> BaseMessage:
        """Answer a question from the nearest documents.

        The joined context is attached as `response_metadata["context"]`.
        """
        llm = self._require_llm()
        docs = self.similarity_search(question, k=k)
        context = CONTEXT_SEPARATOR.join(doc.page_content for doc in docs)

        chain = RAG_PROMPT | llm
        response = chain.invoke(
            {"question": question, "context": context}, config=config
        )
        response.response_metadata["context"] = context
        return response

    # ==========================================
    # Factory Methods
    # ==========================================

    @classmethod
    def from_texts(
        cls,
        texts: list[str],
        embedding: Embeddings,
        metadatas: Optional[list[dict]] = None,
        *,
        ids: Optional[Sequence[Optional[int | str]]] = None,
        engine: Optional[OceanBaseEngine] = None,
        table_config: Optional[TableConfig] = None,
        **kwargs: Any,
    ) -> OceanBaseVectorStore:
        """Create the default schema and an OceanBaseVectorStore from texts."""
        if engine is None or table_config is None:
            raise ValueError("`engine` and `table_config` are required.")
        vs = cls(
            cls.__create_key, engine, embedding, table_config, **kwargs,
        )
        vs.create_default_schema()
        vs.add_texts(texts, metadatas=metadatas, ids=ids)
        return vs
