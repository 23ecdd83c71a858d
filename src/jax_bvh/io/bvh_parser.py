"""BVH parser for loading motion capture files into JAX-native data structures.

This module walks the parse tree produced by the grammar layer exactly once,
building the joint hierarchy depth-first and slicing the motion block's flat
value stream into fixed-width frame rows. It enforces every invariant the
grammar cannot express: declared channel counts, the frame value total and a
positive, finite frame time. Float literals too large for a double are
syntax errors.
"""

import logging
import math
from pathlib import Path
from typing import List, NamedTuple, Tuple, Union

import jax.numpy as jnp
from jax import Array
import numpy as np
from lark import Token, Tree

from jax_bvh.core import Bvh, Channel, Joint, Motion, Skeleton
from jax_bvh.errors import (
    BvhSyntaxError,
    ChannelCountMismatch,
    FrameCountMismatch,
    InvalidFrameTime,
    MalformedJointBody,
)
from jax_bvh.io.grammar import parse_tree

logger = logging.getLogger(__name__)


def load_bvh(bvh_path: Union[str, Path]) -> Bvh:
    """Load a BVH file and convert it to a Bvh PyTree.

    Args:
        bvh_path: Path to the BVH file to load.

    Returns:
        Bvh: The validated skeleton and motion.
    """
    text = Path(bvh_path).read_text(encoding="utf-8")
    logger.debug("Loaded %d characters from %s", len(text), bvh_path)
    return parse_bvh(text)


def parse_bvh(text: str) -> Bvh:
    """Parse BVH text into a validated Bvh PyTree.

    Args:
        text: The complete BVH document.

    Returns:
        Bvh: The skeleton and motion. Motion frames have shape
        (frame_count, total_channels).

    Raises:
        BvhSyntaxError: The text does not match the BVH grammar.
        ChannelCountMismatch: A joint's CHANNELS count disagrees with its listed channels.
        MalformedJointBody: A joint body has neither child joints nor one end site.
        FrameCountMismatch: The motion block does not hold frame_count * total_channels values.
        InvalidFrameTime: The frame time is not positive and finite.
    """
    logger.debug("Parsing BVH document (%d characters)", len(text))
    tree = parse_tree(text)
    root_tree, motion_tree = tree.children

    # Hierarchy: depth-first, columns assigned in declaration order
    root, total_channels = _build_joint(_child_tree(root_tree, "joint_body"), 0)
    skeleton = Skeleton(root=root)

    motion = _build_motion(motion_tree, total_channels)

    logger.debug(
        "Parsed skeleton with %d joints, %d channels and %d frames",
        len(skeleton.joints),
        total_channels,
        motion.frame_count,
    )
    return Bvh(skeleton=skeleton, motion=motion)


class _PendingJoint(NamedTuple):
    """A validated joint body whose children are not built yet."""
    name: str
    offset: Array
    channels: Tuple[Channel, ...]
    channel_start: int
    is_end_site: bool
    children: List[int]


def _build_joint(body: Tree, channel_start: int) -> Tuple[Joint, int]:
    """Build a joint from a ``joint_body`` tree.

    The hierarchy is visited depth-first with an explicit stack, so nesting
    depth is not bounded by the interpreter's recursion limit. Joints are then
    assembled bottom-up, since each Joint is immutable once created.

    Returns:
        The joint and the first motion column after its subtree.
    """
    pending: List[_PendingJoint] = []
    next_column = channel_start
    # (tree, parent index); children pushed in reverse to pop in declaration order
    stack: List[Tuple[Tree, int]] = [(body, -1)]

    while stack:
        tree, parent_idx = stack.pop()
        idx = len(pending)
        if parent_idx >= 0:
            pending[parent_idx].children.append(idx)

        if tree.data == "end_site":
            parent_name = pending[parent_idx].name
            pending.append(
                _PendingJoint(
                    name=f"{parent_name}End",
                    offset=_build_offset(_child_tree(tree, "offset")),
                    channels=(),
                    channel_start=next_column,
                    is_end_site=True,
                    children=[],
                )
            )
            continue

        name_token, offset_tree, channels_tree, *rest = tree.children
        name = str(name_token)
        offset = _build_offset(offset_tree)
        channels = _build_channels(channels_tree, name)

        joint_trees = [child for child in rest if _is_tree(child, "joint")]
        end_site_trees = [child for child in rest if _is_tree(child, "end_site")]
        if joint_trees and len(joint_trees) == len(rest):
            child_trees = [_child_tree(joint_tree, "joint_body") for joint_tree in joint_trees]
        elif len(end_site_trees) == 1 and len(rest) == 1:
            child_trees = end_site_trees
        else:
            logger.debug("Rejecting joint %s: unclassifiable body", name)
            raise MalformedJointBody(name)

        pending.append(
            _PendingJoint(
                name=name,
                offset=offset,
                channels=channels,
                channel_start=next_column,
                is_end_site=False,
                children=[],
            )
        )
        next_column += len(channels)
        stack.extend((child, idx) for child in reversed(child_trees))

    # Pre-order indices: every child comes after its parent
    built: List[Joint] = [None] * len(pending)
    for idx in reversed(range(len(pending))):
        node = pending[idx]
        built[idx] = Joint(
            name=node.name,
            offset=node.offset,
            channels=node.channels,
            children=tuple(built[child] for child in node.children),
            is_end_site=node.is_end_site,
            channel_start=node.channel_start,
        )
    return built[0], next_column


def _build_offset(offset_tree: Tree) -> Array:
    xyz = np.array([_to_float(token) for token in offset_tree.children], dtype=np.float64)
    return jnp.asarray(xyz)


def _build_channels(channels_tree: Tree, joint_name: str) -> Tuple[Channel, ...]:
    count_token, *channel_tokens = channels_tree.children
    declared = int(count_token)
    if declared == 0 or declared != len(channel_tokens):
        logger.debug(
            "Rejecting joint %s: declared %d channels, listed %d",
            joint_name,
            declared,
            len(channel_tokens),
        )
        raise ChannelCountMismatch(joint_name, declared, len(channel_tokens))
    return tuple(Channel.from_token(str(token)) for token in channel_tokens)


def _build_motion(motion_tree: Tree, total_channels: int) -> Motion:
    frames_token, frame_time_token, values_tree = motion_tree.children
    frame_count = int(frames_token)
    frame_time = float(frame_time_token)

    # Single contiguous buffer, sliced into rows by reshape
    values = np.array([_to_float(token) for token in values_tree.children], dtype=np.float64)
    if values.size != frame_count * total_channels:
        logger.debug(
            "Rejecting motion: %d values for %d frames x %d channels",
            values.size,
            frame_count,
            total_channels,
        )
        raise FrameCountMismatch(frame_count, total_channels, int(values.size))

    if not (frame_time > 0 and math.isfinite(frame_time)):
        logger.debug("Rejecting motion: frame time %s", frame_time)
        raise InvalidFrameTime(frame_time)

    frames = jnp.asarray(values).reshape(frame_count, total_channels)
    return Motion(frame_count=frame_count, frame_time=frame_time, frames=frames)


def _to_float(token: Token) -> float:
    """Convert a FLOAT token, rejecting literals too large for a double."""
    value = float(token)
    if not math.isfinite(value):
        logger.debug("Rejecting float literal at line %s: out of range", token.line)
        raise BvhSyntaxError(
            expected=("finite float",),
            found=str(token),
            line=token.line,
            column=token.column,
            offset=token.start_pos,
        )
    return value


def _child_tree(tree: Tree, data: str) -> Tree:
    for child in tree.children:
        if _is_tree(child, data):
            return child
    raise MalformedJointBody(_tree_name(tree))


def _is_tree(node: Union[Tree, Token], data: str) -> bool:
    return isinstance(node, Tree) and node.data == data


def _tree_name(tree: Tree) -> str:
    for child in tree.children:
        if isinstance(child, Token) and child.type == "IDENTIFIER":
            return str(child)
    return str(tree.data)
