"""Tests for distance strategies and configuration models."""

import pytest
from pydantic import ValidationError

from langchain_obvec_search import (
    DistanceStrategy,
    HNSWIndexConfig,
    HNSWSearchConfig,
    OceanBaseSettings,
    TableConfig,
)


class TestDistanceStrategy:

    @pytest.mark.parametrize(
        "name,index_function",
        [
            ("cosine_distance", "cosine"),
            ("l2_distance", "l2"),
            ("inner_product", "inner_product"),
            ("negative_inner_product", "negative_inner_product"),
        ],
    )
    def test_maps_names_to_index_vocabulary(self, name, index_function):
        strategy = DistanceStrategy(name)
        assert strategy.search_function == name
        assert strategy.index_function == index_function

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError):
            DistanceStrategy("manhattan_distance")


class TestTableConfig:

    def test_defaults(self):
        tc = TableConfig(table_name="documents", vector_size=1536)
        assert tc.id_column == "id"
        assert tc.content_column == "content"
        assert tc.embedding_column == "vectors"
        assert tc.namespace_column == "namespace"
        assert tc.metadata_column == "metadata"

    def test_escapes_backticks(self):
        tc = TableConfig(table_name="my`docs", vector_size=3)
        assert tc.escaped_table_name == "my``docs"

    def test_rejects_blank_table_name(self):
        with pytest.raises(ValidationError):
            TableConfig(table_name="  ", vector_size=3)

    def test_rejects_non_positive_vector_size(self):
        with pytest.raises(ValidationError):
            TableConfig(table_name="documents", vector_size=0)


class TestIndexAndSearchConfig:

    def test_index_options(self):
        config = HNSWIndexConfig(distance_strategy="l2_distance")
        assert config.index_options == (
            "(distance=l2, type=hnsw, lib=vsag, m=16, ef_construction=200)"
        )

    def test_search_defaults(self):
        config = HNSWSearchConfig()
        assert config.k == 4
        assert config.ef_search is None
        assert config.distance_strategy == DistanceStrategy.COSINE_DISTANCE


class TestOceanBaseSettings:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("URL", "DRIVER", "HOST", "PORT", "USER", "PASSWORD", "DB_NAME"):
            monkeypatch.delenv(f"OCEANBASE_{name}", raising=False)

    def test_builds_url_from_parts(self):
        settings = OceanBaseSettings(_env_file=None)
        url = settings.connection_url
        assert url.drivername == "mysql+pymysql"
        assert url.host == "127.0.0.1"
        assert url.port == 2881
        assert url.username == "root"
        assert url.password is None
        assert url.database == "langchain"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("OCEANBASE_HOST", "ob.internal")
        monkeypatch.setenv("OCEANBASE_PASSWORD", "secret")
        monkeypatch.setenv("OCEANBASE_DB_NAME", "vectors")
        url = OceanBaseSettings(_env_file=None).connection_url
        assert url.host == "ob.internal"
        assert url.password == "secret"
        assert url.database == "vectors"

    def test_url_overrides_parts(self, monkeypatch):
        monkeypatch.setenv("OCEANBASE_URL", "mysql+pymysql://u:p@h:2881/d")
        url = OceanBaseSettings(_env_file=None).connection_url
        assert url.host == "h"
        assert url.database == "d"
