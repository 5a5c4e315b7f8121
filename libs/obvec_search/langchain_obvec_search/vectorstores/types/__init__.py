from .distance import DistanceStrategy

__all__ = ["DistanceStrategy"]
