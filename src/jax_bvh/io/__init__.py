"""I/O utilities for loading BVH motion capture documents.

This module provides the grammar layer and the builder that turn BVH text
into JAX-native skeleton and motion structures.
"""

from .bvh_parser import load_bvh, parse_bvh

__all__ = ["load_bvh", "parse_bvh"]
