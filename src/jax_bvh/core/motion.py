"""Motion PyTree holding the per-frame channel values of a BVH document."""

import jax.numpy as jnp
from jax import Array
from flax import struct


@struct.dataclass
class Motion:
    """Immutable time series of channel values.

    Attributes:
        frame_count: Number of frames declared by the document.
        frame_time: Seconds between consecutive frames. Always positive.
        frames: Array of shape (frame_count, total_channels). Column order is
                the skeleton's depth-first channel layout.
    """
    frame_count: int = struct.field(pytree_node=False)
    frame_time: float = struct.field(pytree_node=False)
    frames: Array

    @property
    def num_channels(self) -> int:
        return int(self.frames.shape[1])

    @property
    def duration(self) -> float:
        return self.frame_count * self.frame_time

    def timestamps(self) -> Array:
        """Return the start time in seconds of each frame."""
        return jnp.arange(self.frame_count, dtype=jnp.float64) * self.frame_time

    def frame(self, index: int) -> Array:
        """Return the channel values of one frame, shape (num_channels,)."""
        return self.frames[index]
