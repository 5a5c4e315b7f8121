"""Configurations for engine, search"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

from .types import DistanceStrategy

def _escape_mysql_identifier(name: str) -> str:
    return name.replace("`", "``")

#### Table Config
class TableConfig(BaseModel):
    """Configuration for initializing a vector store table."""

    table_name: str = Field(
        ...,
        description="The database table name"
    )

    vector_size: int = Field(
        ...,
        gt=0,
        description="Vector size for the embedding model"
    )

    id_column: str = Field(
        default="id",
        description="Auto-increment BIGINT primary key column"
    )

    content_column: str = Field(
        default="content",
        description="Name of the column to store document content"
    )

    embedding_column: str = Field(
        default="vectors",
        description="Name of the VECTOR column to store embeddings"
    )

    namespace_column: str = Field(
        default="namespace",
        description="Column used to scope rows to a tenant"
    )

    metadata_column: str = Field(
        default="metadata",
        description="Column to store metadata in JSON format"
    )

    @field_validator(
        'table_name', 'id_column', 'content_column',
        'embedding_column', 'namespace_column', 'metadata_column',
    )
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate that string fields are not empty."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v

    @property
    def escaped_table_name(self):
        return _escape_mysql_identifier(self.table_name)

    @property
    def escaped_id_column(self):
        return _escape_mysql_identifier(self.id_column)

    @property
    def escaped_content_column(self):
        return _escape_mysql_identifier(self.content_column)

    @property
    def escaped_embedding_column(self):
        return _escape_mysql_identifier(self.embedding_column)

    @property
    def escaped_namespace_column(self):
        return _escape_mysql_identifier(self.namespace_column)

    @property
    def escaped_metadata_column(self):
        return _escape_mysql_identifier(self.metadata_column)

    @property
    def required_columns(self) -> list[str]:
        return [
            self.id_column,
            self.content_column,
            self.embedding_column,
            self.namespace_column,
            self.metadata_column,
        ]


#### Index Config
class HNSWIndexConfig(BaseModel):
    """Dense HNSW vector index configuration."""
    name: Optional[str] = Field(None, description="Name of hnsw index. Uses `idx_{table_name}_{embedding_column}` if None")
    m: int = Field(16, gt=0, description="Max neighbors per node")
    ef_construction: int = Field(200, gt=0, description="Candidate list size while building")
    lib: str = Field("vsag", description="Vector index library")
    distance_strategy: DistanceStrategy = Field(DistanceStrategy.COSINE_DISTANCE, description="")

    @property
    def index_function(self) -> str:
        return self.distance_strategy.index_function

    @property
    def index_options(self) -> str:
        return (
            f"(distance={self.index_function}, type=hnsw, lib={self.lib}, "
            f"m={self.m}, ef_construction={self.ef_construction})"
        )


#### Search Config
class HNSWSearchConfig(BaseModel):
    k: int = Field(4, gt=0, description="Number of nearest rows to fetch")
    ef_search: Optional[int] = Field(None, gt=0, description="Size of dynamic candidate list. Higher = better recall, slower. Server default if None")

    distance_strategy: DistanceStrategy = Field(DistanceStrategy.COSINE_DISTANCE, description="")


#### Connection Settings
class OceanBaseSettings(BaseSettings):
    """Connection parameters, read from `OCEANBASE_*` env vars or `.env`."""

    model_config = SettingsConfigDict(
        env_prefix="OCEANBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: Optional[str] = None

    driver: str = "mysql+pymysql"
    host: str = "127.0.0.1"
    port: int = 2881
    user: str = "root"
    password: str = ""
    db_name: str = "langchain"

    @property
    def connection_url(self) -> URL:
        if self.url:
            return make_url(self.url)
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.db_name,
        )
