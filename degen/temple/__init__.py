"""Temple, the degen template engine, and its call-chain interpreter."""

from .engine import Temple, find_variables, split_segments
from .expressions import ChainScope, ChainSyntaxError, parse_chain

__all__ = [
    "ChainScope",
    "ChainSyntaxError",
    "Temple",
    "find_variables",
    "parse_chain",
    "split_segments",
]
