"""
Shared fixtures: a mocked SQLAlchemy engine that records executed SQL,
and a keyword-driven fake embedding model.
"""
from unittest.mock import MagicMock

import pytest
from langchain_core.embeddings import Embeddings

from langchain_obvec_search import OceanBaseEngine, TableConfig


class KeywordEmbeddings(Embeddings):
    """Returns a fixed vector per known text and `default` otherwise."""

    def __init__(self, vectors: dict[str, list[float]], default: list[float]):
        self.vectors = vectors
        self.default = default
        self.calls: list[str] = []

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))


def executed_sql(conn: MagicMock) -> list[str]:
    return [" ".join(str(c.args[0]).split()) for c in conn.execute.call_args_list]


def executed_params(conn: MagicMock) -> list[dict]:
    return [c.args[1] if len(c.args) > 1 else {} for c in conn.execute.call_args_list]


@pytest.fixture
def conn():
    return MagicMock(name="connection")


@pytest.fixture
def pool(conn):
    pool = MagicMock(name="engine")
    pool.connect.return_value.__enter__.return_value = conn
    pool.connect.return_value.__exit__.return_value = False
    return pool


@pytest.fixture
def engine(pool):
    return OceanBaseEngine.from_engine(pool)


@pytest.fixture
def table_config():
    return TableConfig(table_name="documents", vector_size=3)


@pytest.fixture
def embeddings():
    return KeywordEmbeddings(
        vectors={
            "Hello": [0.1, 0.2, 0.3],
            "earth": [1.0, 0.0, 0.0],
            "something about earth": [1.0, 0.0, 0.0],
        },
        default=[0.0, 1.0, 0.0],
    )
