"""
JSON wire codec for FEEL values.

Numbers are written as their exact decimal literal and read back with
``parse_float=Decimal``; object key order follows the document.
"""

import json
from decimal import Decimal
from typing import Any, Dict, Iterator

from quantumdmn.model.feel_value import FeelType, FeelValue


class FeelValueCodec:
    """Encodes FEEL values to JSON text and decodes them back."""

    def __init__(self, ensure_ascii: bool = False):
        self.ensure_ascii = ensure_ascii

    def encode(self, value: FeelValue) -> str:
        return "".join(self._iter_encode(value))

    def encode_context(self, entries: Dict[str, FeelValue]) -> str:
        """Encode a plain dict of FEEL values as a JSON object."""
        return self.encode(FeelValue.of_context(entries))

    def decode(self, text: str) -> FeelValue:
        raw = json.loads(text, parse_float=Decimal, parse_int=Decimal, parse_constant=_reject_constant)
        return self.from_wire(raw)

    def to_wire(self, value: FeelValue) -> Any:
        """Project to JSON-compatible Python objects; numbers stay Decimal."""
        return value.to_raw()

    def from_wire(self, raw: Any) -> FeelValue:
        """Build a FEEL value from already-parsed JSON objects."""
        if raw is None:
            return FeelValue.null()
        if isinstance(raw, bool):
            return FeelValue.of_boolean(raw)
        if isinstance(raw, (int, float, Decimal)):
            return FeelValue.of_number(raw)
        if isinstance(raw, str):
            return FeelValue.of_string(raw)
        if isinstance(raw, list):
            return FeelValue.of_list(self.from_wire(item) for item in raw)
        if isinstance(raw, dict):
            return FeelValue.of_context({key: self.from_wire(item) for key, item in raw.items()})
        raise ValueError(f"Not a JSON value: {type(raw).__name__}")

    def _iter_encode(self, value: FeelValue) -> Iterator[str]:
        feel_type = value.type
        if feel_type is FeelType.NULL:
            yield "null"
        elif feel_type is FeelType.BOOLEAN:
            yield "true" if value.as_boolean() else "false"
        elif feel_type is FeelType.NUMBER:
            # str(Decimal) is a valid JSON number for every finite value
            yield str(value.as_number())
        elif feel_type is FeelType.STRING:
            yield json.dumps(value.as_string(), ensure_ascii=self.ensure_ascii)
        elif feel_type is FeelType.LIST:
            yield "["
            for index, item in enumerate(value.as_list()):
                if index:
                    yield ","
                yield from self._iter_encode(item)
            yield "]"
        elif feel_type is FeelType.CONTEXT:
            yield "{"
            for index, (key, item) in enumerate(value.as_context().items()):
                if index:
                    yield ","
                yield json.dumps(key, ensure_ascii=self.ensure_ascii)
                yield ":"
                yield from self._iter_encode(item)
            yield "}"
        else:  # pragma: no cover - FeelType is closed
            raise ValueError(f"Unknown FEEL type: {feel_type}")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number in FEEL payload: {name}")


default_codec = FeelValueCodec()


def encode(value: FeelValue) -> str:
    return default_codec.encode(value)


def decode(text: str) -> FeelValue:
    return default_codec.decode(text)
