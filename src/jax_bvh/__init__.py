"""
JAX BVH: a strict Biovision Hierarchy motion capture parser.

This library parses BVH documents into an immutable joint hierarchy and a
double-precision motion matrix, validating channel layouts and frame counts
along the way. All structures are JAX PyTrees.
"""

import jax
jax.config.update("jax_enable_x64", True)

# Import core modules
from . import core
from . import errors
from . import io
from .io import load_bvh, parse_bvh

__version__ = "0.1.0"
__all__ = ["core", "errors", "io", "load_bvh", "parse_bvh"]
