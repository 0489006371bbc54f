"""Tokenization layer for the lightweight XML parser.

Converts a byte buffer into a flat sequence of classified tokens, expanding
the fixed entity set while strings and text runs are extracted.
"""

from .entities import DEFAULT_ENTITIES, EntityResolver, default_resolver
from .tokenizer import (
    Token,
    TokenizationError,
    TokenizationResult,
    TokenPosition,
    TokenType,
    XMLTokenizer,
    tokenize,
)

__all__ = [
    "DEFAULT_ENTITIES",
    "EntityResolver",
    "default_resolver",
    "Token",
    "TokenizationError",
    "TokenizationResult",
    "TokenPosition",
    "TokenType",
    "XMLTokenizer",
    "tokenize",
]
