"""Error taxonomy for BVH parsing.

Every failure raised by :func:`jax_bvh.parse_bvh` derives from
:class:`BvhError`. A failed parse never returns a partial skeleton or motion.
"""

from typing import Optional, Tuple


class BvhError(ValueError):
    """Base class for all BVH parse and validation failures."""


class BvhSyntaxError(BvhError):
    """The document does not match the BVH grammar.

    Attributes:
        expected: Human-readable descriptions of the tokens the grammar
                  would have accepted at the failure point.
        found: The offending text, or ``"end of input"``.
        line: 1-based line of the failure.
        column: 1-based column of the failure.
        offset: 0-based character offset of the failure.
    """

    def __init__(
        self,
        *,
        expected: Tuple[str, ...],
        found: str,
        line: int,
        column: int,
        offset: Optional[int] = None,
    ) -> None:
        self.expected = expected
        self.found = found
        self.line = line
        self.column = column
        self.offset = offset
        wanted = " or ".join(expected) if expected else "nothing"
        super().__init__(
            f"line {line}, column {column}: expected {wanted}, found {found!r}"
        )


class ChannelCountMismatch(BvhError):
    """A joint's CHANNELS count disagrees with the channel tokens listed."""

    def __init__(self, joint: str, declared: int, actual: int) -> None:
        self.joint = joint
        self.declared = declared
        self.actual = actual
        if declared == 0:
            message = f"Joint '{joint}' declares no channels"
        else:
            message = (
                f"Joint '{joint}' declares {declared} channels "
                f"but lists {actual}"
            )
        super().__init__(message)


class MalformedJointBody(BvhError):
    """A joint body is neither a list of child joints nor a single end site."""

    def __init__(self, joint: str) -> None:
        self.joint = joint
        super().__init__(
            f"Joint '{joint}' must contain either child joints or exactly one End Site"
        )


class FrameCountMismatch(BvhError):
    """The motion block does not hold ``frame_count * total_channels`` values."""

    def __init__(self, frame_count: int, total_channels: int, actual: int) -> None:
        self.frame_count = frame_count
        self.total_channels = total_channels
        self.expected = frame_count * total_channels
        self.actual = actual
        super().__init__(
            f"Expected {self.expected} motion values "
            f"({frame_count} frames x {total_channels} channels), found {actual}"
        )


class InvalidFrameTime(BvhError):
    """The frame time is zero, negative or not finite."""

    def __init__(self, frame_time: float) -> None:
        self.frame_time = frame_time
        super().__init__(f"Frame time must be positive and finite, got {frame_time}")
