"""Shared Pydantic base with camelCase wire-format serialization."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes to camelCase on disk and on the wire.

    - Python code uses snake_case field names (PEP 8)
    - Stored JSON uses camelCase, matching the desktop front end
    - Input accepts either spelling (``populate_by_name``)
    - ``to_wire()`` is the one place that picks the on-disk shape
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, object]:
        """Return the camelCase, JSON-compatible representation."""
        return self.model_dump(mode="json", by_alias=True)
