"""Fixed-capacity list annotation for bounded history fields."""

from dataclasses import dataclass
from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema


@dataclass(frozen=True)
class RingBuffer:
    """Keep only the most recent ``capacity`` items of an annotated list field.

    Used as ``Annotated[list[str], RingBuffer(5)]``. Trimming happens on
    validation, so models that use it set ``validate_assignment=True`` and
    append by assigning a new list (see :func:`push`).
    """

    capacity: int

    def __get_pydantic_core_schema__(
        self, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(self.trim, handler(source_type))

    def trim(self, items: list) -> list:
        return list(items)[-self.capacity :]


def push(items: list, item: Any) -> list:
    """Return a new list with ``item`` appended; trimming is left to the field."""
    return [*items, item]
