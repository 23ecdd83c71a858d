"""Skeleton and Motion PyTree data structures for parsed BVH documents.

This module defines the immutable value objects produced by the parser. The
joint tree mirrors the document's HIERARCHY block and the motion matrix holds
one row per frame, with columns laid out in depth-first declaration order.
"""

import enum
from typing import Iterator, List, Tuple, Union

import jax.numpy as jnp
from jax import Array
from flax import struct


class Channel(enum.Enum):
    """One animated degree of freedom, named exactly as it appears in BVH."""
    X_POSITION = "Xposition"
    Y_POSITION = "Yposition"
    Z_POSITION = "Zposition"
    X_ROTATION = "Xrotation"
    Y_ROTATION = "Yrotation"
    Z_ROTATION = "Zrotation"

    @classmethod
    def from_token(cls, token: str) -> "Channel":
        """Return the member spelled ``token`` in a CHANNELS record."""
        return cls(token)

    @property
    def axis(self) -> str:
        return self.value[0]

    @property
    def kind(self) -> str:
        return self.value[1:]

    @property
    def is_position(self) -> bool:
        return self.kind == "position"

    @property
    def is_rotation(self) -> bool:
        return self.kind == "rotation"


@struct.dataclass
class Joint:
    """A node of the skeleton tree.

    Attributes:
        name: Joint name from the document. End sites are named after their
              parent with an ``End`` suffix.
        offset: Array of shape (3,) with the rest-pose translation from the parent.
        channels: Ordered channels animated by this joint. Empty for end sites.
        children: Child joints in declaration order.
        is_end_site: True for the terminal ``End Site`` markers.
        channel_start: Index of this joint's first column in every motion
                       frame. End sites own no columns.
    """
    name: str = struct.field(pytree_node=False)
    offset: Array
    channels: Tuple[Channel, ...] = struct.field(pytree_node=False)
    children: Tuple["Joint", ...]
    is_end_site: bool = struct.field(pytree_node=False)
    channel_start: int = struct.field(pytree_node=False)

    @property
    def num_channels(self) -> int:
        return len(self.channels)

    @property
    def channel_slice(self) -> slice:
        return slice(self.channel_start, self.channel_start + self.num_channels)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def walk(self) -> Iterator["Joint"]:
        """Yield this joint and all its descendants depth-first."""
        stack = [self]
        while stack:
            joint = stack.pop()
            yield joint
            stack.extend(reversed(joint.children))


@struct.dataclass
class Skeleton:
    """The joint hierarchy of a BVH document, rooted at a single joint."""
    root: Joint

    @property
    def joints(self) -> Tuple[Joint, ...]:
        """All joints, end sites included, in depth-first declaration order."""
        return tuple(self.root.walk())

    @property
    def joint_names(self) -> Tuple[str, ...]:
        return tuple(joint.name for joint in self.joints)

    @property
    def parent_indices(self) -> Array:
        """Array of shape (num_joints,) indexing into ``joints``. Root parents itself."""
        parents: List[int] = []
        stack = [(self.root, -1)]
        while stack:
            joint, parent_idx = stack.pop()
            idx = len(parents)
            parents.append(parent_idx if parent_idx >= 0 else idx)
            stack.extend((child, idx) for child in reversed(joint.children))
        return jnp.array(parents, dtype=jnp.int32)

    @property
    def offsets(self) -> Array:
        """Array of shape (num_joints, 3) with every joint's rest offset."""
        return jnp.stack([joint.offset for joint in self.joints])

    @property
    def total_channels(self) -> int:
        return sum(joint.num_channels for joint in self.joints)

    @property
    def columns(self) -> Tuple[Tuple[str, Channel], ...]:
        """The (joint name, channel) pair owning each motion column."""
        return tuple(
            (joint.name, channel)
            for joint in self.joints
            for channel in joint.channels
        )

    def find_joints(self, name: str) -> Tuple[Joint, ...]:
        """Return every joint called ``name``. Names are not required to be unique."""
        return tuple(joint for joint in self.joints if joint.name == name)

    def column_index(self, joint: Union[str, Joint], channel: Channel) -> int:
        """Return the motion column holding ``channel`` of ``joint``."""
        if isinstance(joint, str):
            matches = self.find_joints(joint)
            if not matches:
                raise KeyError(f"Unknown joint: {joint}")
            # End sites own no columns and carry generated names
            animated = [match for match in matches if not match.is_end_site]
            if len(animated) > 1:
                raise ValueError(
                    f"Joint name '{joint}' is ambiguous ({len(animated)} matches); "
                    "pass the Joint itself"
                )
            joint = animated[0] if animated else matches[0]
        if channel not in joint.channels:
            raise ValueError(f"Joint '{joint.name}' has no {channel.value} channel")
        return joint.channel_start + joint.channels.index(channel)
