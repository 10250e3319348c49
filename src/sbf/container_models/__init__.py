"""
Immutable data container models for point clouds.

The containers are frozen Pydantic models: the point matrix is validated when the
container is created and can not be changed afterwards.
"""

from .point_cloud import PointCloud


__all__ = ["PointCloud"]
