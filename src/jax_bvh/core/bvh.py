"""Top-level container pairing a parsed skeleton with its motion."""

from typing import Iterator, Union

from jax import Array
from flax import struct

from .motion import Motion
from .skeleton import Channel, Joint, Skeleton


@struct.dataclass
class Bvh:
    """A fully validated BVH document.

    Unpacks as the ``(skeleton, motion)`` pair::

        skeleton, motion = parse_bvh(text)
    """
    skeleton: Skeleton
    motion: Motion

    def __iter__(self) -> Iterator[Union[Skeleton, Motion]]:
        yield self.skeleton
        yield self.motion

    def channel_values(self, joint: Union[str, Joint], channel: Channel) -> Array:
        """Return one channel of one joint across all frames, shape (frame_count,)."""
        return self.motion.frames[:, self.skeleton.column_index(joint, channel)]
