"""LangChain OceanBase vector search integration."""

from .vectorstores import (
    # Main classes
    OceanBaseVectorStore,
    OceanBaseEngine,
    # Table & Data
    TableConfig,
    Row,
    format_vector,
    parse_vector,
    # Index & search configs
    HNSWIndexConfig,
    HNSWSearchConfig,
    # Connection
    OceanBaseSettings,
    # Types
    DistanceStrategy,
)

__all__ = [
    # Main classes
    "OceanBaseVectorStore",
    "OceanBaseEngine",
    # Table & Data
    "TableConfig",
    "Row",
    "format_vector",
    "parse_vector",
    # Index & search configs
    "HNSWIndexConfig",
    "HNSWSearchConfig",
    # Connection
    "OceanBaseSettings",
    # Types
    "DistanceStrategy",
]
