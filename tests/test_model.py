"""Tests for the Skeleton, Motion and Channel data structures."""

from pathlib import Path

import jax.numpy as jnp
import numpy as np
import pytest

from jax_bvh.core import Channel
from jax_bvh.io import load_bvh, parse_bvh

FIXTURES = Path(__file__).parent / "fixtures"

DUPLICATE_NAMES_BVH = (
    "HIERARCHY ROOT Hips { OFFSET 0 0 0 CHANNELS 1 Yposition "
    "JOINT Leg { OFFSET 1 0 0 CHANNELS 1 Xrotation End Site { OFFSET 0 -1 0 } } "
    "JOINT Leg { OFFSET -1 0 0 CHANNELS 1 Xrotation End Site { OFFSET 0 -1 0 } } } "
    "MOTION Frames: 1 Frame Time: 0.1 5 6 7"
)


def test_channel_properties():
    """Test axis and kind decomposition of channels."""
    assert Channel.from_token("Xposition") is Channel.X_POSITION
    assert Channel.Z_ROTATION.axis == "Z"
    assert Channel.Z_ROTATION.kind == "rotation"
    assert Channel.Y_POSITION.is_position
    assert not Channel.Y_POSITION.is_rotation
    assert [channel.value for channel in Channel] == [
        "Xposition", "Yposition", "Zposition", "Xrotation", "Yrotation", "Zrotation",
    ]

    with pytest.raises(ValueError):
        Channel.from_token("Wposition")


def test_duplicate_joint_names():
    """Test that duplicate names are kept and looked up as a sequence."""
    bvh = parse_bvh(DUPLICATE_NAMES_BVH)
    skeleton = bvh.skeleton

    legs = skeleton.find_joints("Leg")
    assert len(legs) == 2
    np.testing.assert_array_equal(legs[0].offset, jnp.array([1.0, 0.0, 0.0]))
    np.testing.assert_array_equal(legs[1].offset, jnp.array([-1.0, 0.0, 0.0]))
    assert skeleton.find_joints("Arm") == ()

    # Name lookups are ambiguous, joint lookups are not
    with pytest.raises(ValueError, match="ambiguous"):
        skeleton.column_index("Leg", Channel.X_ROTATION)
    assert skeleton.column_index(legs[0], Channel.X_ROTATION) == 1
    assert skeleton.column_index(legs[1], Channel.X_ROTATION) == 2
    np.testing.assert_array_equal(bvh.channel_values(legs[1], Channel.X_ROTATION), jnp.array([7.0]))


def test_column_index_errors():
    """Test lookups of unknown joints and channels."""
    skeleton = parse_bvh(DUPLICATE_NAMES_BVH).skeleton

    with pytest.raises(KeyError):
        skeleton.column_index("Arm", Channel.X_ROTATION)
    with pytest.raises(ValueError, match="no Zrotation channel"):
        skeleton.column_index("Hips", Channel.Z_ROTATION)


def test_joint_helpers():
    """Test per-joint derived properties."""
    skeleton = load_bvh(FIXTURES / "biped.bvh").skeleton
    hips = skeleton.root

    assert hips.num_channels == 6
    assert hips.channel_slice == slice(0, 6)
    assert not hips.is_leaf
    assert [joint.name for joint in hips.walk()] == list(skeleton.joint_names)

    head_end = skeleton.find_joints("HeadEnd")[0]
    assert head_end.is_leaf
    assert head_end.num_channels == 0
    assert head_end.channel_slice == slice(12, 12)


def test_columns_match_channel_total():
    """Test that every motion column has exactly one owner."""
    skeleton = load_bvh(FIXTURES / "biped.bvh").skeleton
    columns = skeleton.columns

    assert len(columns) == skeleton.total_channels
    assert columns[:6] == (
        ("Hips", Channel.X_POSITION),
        ("Hips", Channel.Y_POSITION),
        ("Hips", Channel.Z_POSITION),
        ("Hips", Channel.Z_ROTATION),
        ("Hips", Channel.X_ROTATION),
        ("Hips", Channel.Y_ROTATION),
    )
    assert columns[-1] == ("RightLeg", Channel.Y_ROTATION)


def test_motion_timing():
    """Test frame timestamps and duration."""
    motion = load_bvh(FIXTURES / "biped.bvh").motion

    assert motion.num_channels == 18
    np.testing.assert_allclose(motion.timestamps(), jnp.array([0.0, 0.0333333, 0.0666666]))
    assert motion.duration == pytest.approx(3 * 0.0333333)
    np.testing.assert_array_equal(motion.frame(-1), motion.frames[2])


def test_generated_end_site_name_does_not_shadow_real_joint():
    """Test that a real joint named like a generated end site stays addressable."""
    text = (
        "HIERARCHY ROOT A { OFFSET 0 0 0 CHANNELS 1 Xposition "
        "JOINT B { OFFSET 1 0 0 CHANNELS 1 Xrotation End Site { OFFSET 0 1 0 } } "
        "JOINT BEnd { OFFSET -1 0 0 CHANNELS 1 Yrotation End Site { OFFSET 0 1 0 } } } "
        "MOTION Frames: 1 Frame Time: 0.1 1 2 3"
    )
    bvh = parse_bvh(text)
    skeleton = bvh.skeleton

    # The end site under B and the real joint share a name
    matches = skeleton.find_joints("BEnd")
    assert [joint.is_end_site for joint in matches] == [True, False]

    assert skeleton.column_index("BEnd", Channel.Y_ROTATION) == 2
    np.testing.assert_array_equal(bvh.channel_values("BEnd", Channel.Y_ROTATION), jnp.array([3.0]))

    # A name held only by an end site resolves to a joint without channels
    with pytest.raises(ValueError, match="no Yrotation channel"):
        skeleton.column_index("BEndEnd", Channel.Y_ROTATION)
