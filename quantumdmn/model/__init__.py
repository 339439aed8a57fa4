"""
FEEL value model.

- feel_value: the immutable FeelValue tagged union and from_raw dispatch.
- codec: Decimal-exact, order-preserving JSON encoding of FEEL values.
- builders: chaining helpers for building contexts and lists.
"""

from .feel_value import FeelType, FeelValue, to_feel_context
from .codec import FeelValueCodec, decode, encode
from .builders import ContextBuilder, ListBuilder, context_builder, list_builder

__all__ = [
    "ContextBuilder",
    "FeelType",
    "FeelValue",
    "FeelValueCodec",
    "ListBuilder",
    "context_builder",
    "decode",
    "encode",
    "list_builder",
    "to_feel_context",
]
