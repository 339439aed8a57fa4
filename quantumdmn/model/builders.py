"""
Chaining builders for FEEL contexts and lists.

Example::

    inputs = (
        context_builder()
        .put("age", 25)
        .put("income", 50000.0)
        .put("employed", True)
        .build()
    )
"""

from typing import Any, Dict, List

from quantumdmn.model.feel_value import FeelValue


class ContextBuilder:
    """Builder for FEEL contexts; entries keep the order they were put in."""

    def __init__(self):
        self._entries: Dict[str, FeelValue] = {}

    def put(self, key: str, value: Any) -> "ContextBuilder":
        self._entries[key] = FeelValue.from_raw(value)
        return self

    def put_null(self, key: str) -> "ContextBuilder":
        self._entries[key] = FeelValue.null()
        return self

    def build(self) -> FeelValue:
        return FeelValue.of_context(self._entries)


class ListBuilder:
    """Builder for FEEL lists."""

    def __init__(self):
        self._items: List[FeelValue] = []

    def add(self, value: Any) -> "ListBuilder":
        self._items.append(FeelValue.from_raw(value))
        return self

    def add_null(self) -> "ListBuilder":
        self._items.append(FeelValue.null())
        return self

    def build(self) -> FeelValue:
        return FeelValue.of_list(self._items)


def context_builder() -> ContextBuilder:
    return ContextBuilder()


def list_builder() -> ListBuilder:
    return ListBuilder()
