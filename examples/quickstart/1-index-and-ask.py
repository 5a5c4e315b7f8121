"""
Quickstart: index a few documents into OceanBase and ask a question.

Creates:
- Table with a VECTOR column sized to the embedding model
- HNSW vector index (cosine distance)

Connection settings come from OCEANBASE_* env vars (see OceanBaseSettings).
"""
import structlog
from langchain_openai import ChatOpenAI, OpenAIEmbeddings
from langchain_obvec_search import (
    DistanceStrategy,
    HNSWIndexConfig,
    OceanBaseEngine,
    OceanBaseSettings,
    OceanBaseVectorStore,
    TableConfig,
)

from config import settings

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
)

TABLE_NAME = "quickstart_documents"

DOCUMENTS = [
    ("OceanBase supports a native VECTOR column type.", {"topic": "storage"}),
    ("HNSW indexes trade exactness for query speed.", {"topic": "index"}),
    ("APPROXIMATE LIMIT asks the optimizer to use the vector index.", {"topic": "query"}),
]


def main():
    engine = OceanBaseEngine.from_settings(OceanBaseSettings())

    print(f"EMBEDDING: {settings.embedding_model}")
    embedding_service = OpenAIEmbeddings(
        model=settings.embedding_model,
        base_url=settings.embedding_base_url,
        api_key=settings.embedding_api_key,
        dimensions=settings.embedding_dim,
        check_embedding_ctx_length=False
    )
    llm = ChatOpenAI(
        model=settings.chat_model,
        base_url=settings.chat_base_url,
        api_key=settings.chat_api_key,
    )

    store = OceanBaseVectorStore.from_texts(
        [text[:settings.max_length] for text, _ in DOCUMENTS],
        embedding_service,
        metadatas=[meta for _, meta in DOCUMENTS],
        engine=engine,
        table_config=TableConfig(
            table_name=TABLE_NAME,
            vector_size=settings.embedding_dim,
        ),
        distance_strategy=DistanceStrategy.COSINE_DISTANCE,
        index_config=HNSWIndexConfig(m=32, ef_construction=128),
        llm=llm,
        ef_search=64,
    )
    print(f"Indexed {len(DOCUMENTS)} documents into {TABLE_NAME}")

    for doc, distance in store.similarity_search_with_score("How is the index used?", k=2):
        print(f"{distance:.4f}  {doc.page_content}  {doc.metadata}")

    response = store.ask("What does APPROXIMATE LIMIT do?", k=2)
    print(response.content)
    print("--- context ---")
    print(response.response_metadata["context"])

    store.destroy_default_schema()
    engine.close()


if __name__ == "__main__":
    main()
