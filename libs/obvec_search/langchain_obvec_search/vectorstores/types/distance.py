"""Type definitions"""

from enum import Enum

# Search Distance Strategy
class DistanceStrategy(Enum):
    """Dense search distance functions supported by OceanBase"""

    COSINE_DISTANCE = "cosine_distance"
    EUCLIDEAN = "l2_distance"
    INNER_PRODUCT = "inner_product"
    NEGATIVE_INNER_PRODUCT = "negative_inner_product"

    @property
    def search_function(self) -> str:
        """Return the SQL distance function for the distance strategy."""
        return self.value

    @property
    def index_function(self) -> str:
        """Return the vector index `distance` parameter for the distance strategy."""
        if self == DistanceStrategy.EUCLIDEAN:
            return "l2"
        elif self == DistanceStrategy.COSINE_DISTANCE:
            return "cosine"
        elif self == DistanceStrategy.INNER_PRODUCT:
            return "inner_product"
        elif self == DistanceStrategy.NEGATIVE_INNER_PRODUCT:
            return "negative_inner_product"
        raise ValueError(f"Unknown distance strategy: {self}")
