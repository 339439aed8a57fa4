"""
FEEL (Friendly Enough Expression Language) values.

A FeelValue is an immutable tagged value: one of number, string, boolean,
list, context (string-keyed map) or null. Numbers are always held as
``decimal.Decimal`` so amounts such as ``50000.0`` and ``0.1`` reach the
engine exactly as written.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from quantumdmn.errors import FeelTypeMismatch
from quantumdmn.logging import get_logger

logger = get_logger("quantumdmn.model.feel_value")

NumberLike = Union[int, float, str, Decimal]


class FeelType(Enum):
    """FEEL value types."""
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    LIST = "list"
    CONTEXT = "context"
    NULL = "null"


class FeelValue:
    """Immutable FEEL value: a type tag plus its payload."""

    __slots__ = ("_type", "_value")

    def __init__(self, feel_type: FeelType, value: Any):
        object.__setattr__(self, "_type", feel_type)
        object.__setattr__(self, "_value", value)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("FeelValue is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("FeelValue is immutable")

    def __copy__(self) -> "FeelValue":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "FeelValue":
        return self

    def __reduce__(self):
        payload = dict(self._value) if self._type is FeelType.CONTEXT else self._value
        return _restore, (self._type.value, payload)

    # factory methods

    @classmethod
    def of_number(cls, value: NumberLike) -> "FeelValue":
        """Create a number. Floats go through their shortest repr, never binary expansion."""
        return cls(FeelType.NUMBER, _to_decimal(value))

    @classmethod
    def of_string(cls, value: str) -> "FeelValue":
        if not isinstance(value, str):
            raise TypeError(f"FEEL string requires str, got {type(value).__name__}")
        return cls(FeelType.STRING, value)

    @classmethod
    def of_boolean(cls, value: bool) -> "FeelValue":
        if not isinstance(value, bool):
            raise TypeError(f"FEEL boolean requires bool, got {type(value).__name__}")
        return cls(FeelType.BOOLEAN, value)

    @classmethod
    def of_list(cls, values: Iterable["FeelValue"]) -> "FeelValue":
        items = tuple(values)
        for item in items:
            if not isinstance(item, FeelValue):
                raise TypeError(f"FEEL list elements must be FeelValue, got {type(item).__name__}")
        return cls(FeelType.LIST, items)

    @classmethod
    def of_context(cls, entries: Mapping) -> "FeelValue":
        frozen: Dict[str, FeelValue] = {}
        for key, item in entries.items():
            if not isinstance(key, str):
                raise TypeError(f"FEEL context keys must be str, got {type(key).__name__}")
            if not isinstance(item, FeelValue):
                raise TypeError(f"FEEL context values must be FeelValue, got {type(item).__name__}")
            frozen[key] = item
        return cls(FeelType.CONTEXT, MappingProxyType(frozen))

    @classmethod
    def null(cls) -> "FeelValue":
        return _NULL

    @classmethod
    def from_raw(cls, raw: Any) -> "FeelValue":
        """Classify plain Python data into a FEEL value.

        Shapes are checked in order: None, FeelValue, bool, number
        (int/float/Decimal), str, mapping, sequence. Anything else is
        wrapped as a string holding ``str(raw)``; that fallback is
        intentional, so callers passing dates or UUIDs get their text form.
        Mapping keys are converted with ``str``; two keys with the same text
        form (``1`` and ``"1"``) raise TypeError instead of merging.
        """
        if raw is None:
            return _NULL
        if isinstance(raw, FeelValue):
            return raw
        # bool is an int subclass, so it must be tested first
        if isinstance(raw, bool):
            return cls.of_boolean(raw)
        if isinstance(raw, (int, float, Decimal)):
            return cls.of_number(raw)
        if isinstance(raw, str):
            return cls.of_string(raw)
        if isinstance(raw, Mapping):
            return cls.of_context({k: cls.from_raw(v) for k, v in _text_keys(raw).items()})
        if isinstance(raw, Sequence) and not isinstance(raw, (bytes, bytearray)):
            return cls.of_list(cls.from_raw(item) for item in raw)

        logger.debug("Wrapping unrecognized value as FEEL string", source_type=type(raw).__name__)
        return cls.of_string(str(raw))

    # type checking

    @property
    def type(self) -> FeelType:
        return self._type

    def is_number(self) -> bool:
        return self._type is FeelType.NUMBER

    def is_string(self) -> bool:
        return self._type is FeelType.STRING

    def is_boolean(self) -> bool:
        return self._type is FeelType.BOOLEAN

    def is_list(self) -> bool:
        return self._type is FeelType.LIST

    def is_context(self) -> bool:
        return self._type is FeelType.CONTEXT

    def is_null(self) -> bool:
        return self._type is FeelType.NULL

    # typed getters

    def _expect(self, expected: FeelType) -> Any:
        if self._type is not expected:
            raise FeelTypeMismatch(expected.value, self._type.value)
        return self._value

    def as_number(self) -> Decimal:
        return self._expect(FeelType.NUMBER)

    def as_string(self) -> str:
        return self._expect(FeelType.STRING)

    def as_boolean(self) -> bool:
        return self._expect(FeelType.BOOLEAN)

    def as_list(self) -> Tuple["FeelValue", ...]:
        return self._expect(FeelType.LIST)

    def as_context(self) -> Mapping:
        """Return the context entries as a read-only mapping in insertion order."""
        return self._expect(FeelType.CONTEXT)

    def to_raw(self) -> Any:
        """Project to plain Python data (Decimal, str, bool, list, dict, None)."""
        if self._type is FeelType.LIST:
            return [item.to_raw() for item in self._value]
        if self._type is FeelType.CONTEXT:
            return {key: item.to_raw() for key, item in self._value.items()}
        return self._value

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, FeelValue):
            return NotImplemented
        if self._type is not other._type:
            return False
        if self._type is FeelType.CONTEXT:
            return dict(self._value) == dict(other._value)
        return self._value == other._value

    def __hash__(self) -> int:
        if self._type is FeelType.CONTEXT:
            return hash((self._type, frozenset(self._value.items())))
        return hash((self._type, self._value))

    def __repr__(self) -> str:
        if self._type is FeelType.CONTEXT:
            return f"FeelValue(type={self._type.name}, value={dict(self._value)!r})"
        if self._type is FeelType.LIST:
            return f"FeelValue(type={self._type.name}, value={list(self._value)!r})"
        return f"FeelValue(type={self._type.name}, value={self._value!r})"


def _to_decimal(value: NumberLike) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("FEEL number does not accept bool")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        number = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a decimal literal: {value!r}") from exc
    else:
        raise TypeError(f"FEEL number requires int, float, str or Decimal, got {type(value).__name__}")

    if not number.is_finite():
        raise ValueError(f"FEEL numbers must be finite, got {value!r}")
    return number


_NULL = FeelValue(FeelType.NULL, None)


def _restore(type_value: str, payload: Any) -> FeelValue:
    feel_type = FeelType(type_value)
    if feel_type is FeelType.NULL:
        return _NULL
    if feel_type is FeelType.CONTEXT:
        payload = MappingProxyType(payload)
    return FeelValue(feel_type, payload)


def _text_keys(entries: Mapping) -> Dict[str, Any]:
    """Stringify mapping keys, refusing keys whose text forms collide."""
    converted: Dict[str, Any] = {}
    for key, value in entries.items():
        text = str(key)
        if text in converted:
            raise TypeError(f"Context keys collide after conversion to text: {text!r}")
        converted[text] = value
    return converted


def to_feel_context(values: Optional[Mapping]) -> Dict[str, FeelValue]:
    """Convert a mapping of raw inputs into FEEL values, preserving key order."""
    if not values:
        return {}
    return {key: FeelValue.from_raw(value) for key, value in _text_keys(values).items()}
