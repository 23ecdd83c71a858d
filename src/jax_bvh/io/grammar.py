"""Lexical and grammar layer for BVH documents.

The grammar lives in ``bvh.lark`` next to this module and is compiled once
into an LALR parser. The contextual lexer only considers the terminals the
parser can accept in its current state, so keywords never collide with
joint names and integers never collide with floats.
"""

from pathlib import Path
from typing import Iterable, Tuple

from lark import Lark, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from jax_bvh.errors import BvhSyntaxError

_GRAMMAR_PATH = Path(__file__).with_name("bvh.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

_PARSER = Lark(
    _GRAMMAR_SRC,
    parser="lalr",
    lexer="contextual",
    start="start",
    propagate_positions=True,
    maybe_placeholders=False,
)

# Display names for terminals in error messages
_TERMINAL_DESCRIPTIONS = {
    "_HIERARCHY": "'HIERARCHY'",
    "_ROOT": "'ROOT'",
    "_JOINT": "'JOINT'",
    "_END_SITE": "'End Site'",
    "_OFFSET": "'OFFSET'",
    "_CHANNELS": "'CHANNELS'",
    "_MOTION": "'MOTION'",
    "_FRAMES": "'Frames:'",
    "_FRAME_TIME": "'Frame Time:'",
    "_LBRACE": "'{'",
    "_RBRACE": "'}'",
    "IDENTIFIER": "identifier",
    "INTEGER": "integer",
    "FLOAT": "float",
    "CHANNEL": "channel",
    "$END": "end of input",
}


def parse_tree(text: str) -> Tree:
    """Parse BVH text into a lark parse tree.

    Args:
        text: The complete BVH document.

    Returns:
        The ``start`` tree with ``root`` and ``motion`` children.

    Raises:
        BvhSyntaxError: If the text does not match the grammar. Parsing stops
            at the first mismatch.
    """
    try:
        return _PARSER.parse(text)
    except UnexpectedInput as exc:
        raise _to_syntax_error(exc, text) from exc


def describe_terminals(names: Iterable[str]) -> Tuple[str, ...]:
    """Map lark terminal names to sorted, human-readable descriptions."""
    return tuple(sorted(_TERMINAL_DESCRIPTIONS.get(name, name) for name in names))


def _to_syntax_error(exc: UnexpectedInput, text: str) -> BvhSyntaxError:
    if isinstance(exc, UnexpectedToken):
        expected = describe_terminals(exc.expected)
        if exc.token.type == "$END":
            found = "end of input"
            offset = len(text)
            line, column = _position(text, offset)
        else:
            found = str(exc.token)
            offset = exc.token.start_pos
            line, column = exc.line, exc.column
    elif isinstance(exc, UnexpectedCharacters):
        expected = describe_terminals(exc.allowed or ())
        offset = exc.pos_in_stream
        found = _word_at(text, offset)
        line, column = exc.line, exc.column
    else:
        expected = describe_terminals(getattr(exc, "expected", None) or ())
        offset = len(text)
        found = "end of input"
        line, column = _position(text, offset)
    return BvhSyntaxError(
        expected=expected, found=found, line=line, column=column, offset=offset
    )


def _position(text: str, offset: int) -> Tuple[int, int]:
    """Return the 1-based (line, column) of a character offset."""
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _word_at(text: str, offset: int) -> str:
    """Return the whitespace-delimited run of text starting at ``offset``."""
    end = offset
    while end < len(text) and not text[end].isspace():
        end += 1
    return text[offset:end] or text[offset:offset + 1]
