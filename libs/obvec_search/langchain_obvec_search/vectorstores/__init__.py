"""OceanBase VectorStore package."""

from .obvec_search import OceanBaseVectorStore
from .engine import OceanBaseEngine
from .config import (
    TableConfig,
    HNSWIndexConfig,
    HNSWSearchConfig,
    OceanBaseSettings,
)
from .data import Row, format_vector, parse_vector
from .types import DistanceStrategy

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
