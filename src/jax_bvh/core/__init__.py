"""Core data structures for JAX BVH.

This module provides the immutable skeleton and motion representations
produced by the parser.
"""

from .skeleton import Channel, Joint, Skeleton
from .motion import Motion
from .bvh import Bvh

__all__ = ["Channel", "Joint", "Skeleton", "Motion", "Bvh"]
