"""Pydantic models for form specifications stored in the registry."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class FieldSpec(BaseModel):
    """Field entry within a form spec.

    A field with ``fields`` describes a nested form; add ``collection``
    for a list of them.
    """

    name: str
    type: str | None = None
    default: Any = None
    validates: dict[str, Any] = Field(default_factory=dict)
    collection: bool = False
    fields: list[FieldSpec] | None = None
    virtual: bool = False
    readable: bool = True
    writeable: bool = True
    from_: str | None = Field(default=None, alias="from")
    on: str | None = None
    wire: bool = True
    save: bool = True
    skip_if: Literal["all_blank"] | None = None

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @property
    def nested(self) -> bool:
        return self.fields is not None


class FormSpec(BaseModel):
    """Complete form specification."""

    type: Literal["form_spec"]
    form_id: str
    version: str
    name: str | None = None
    description: str | None = None
    fields: list[FieldSpec]

    def get_field(self, name: str) -> FieldSpec | None:
        """Get a top-level field by name."""
        for field in self.fields:
            if field.name == name:
                return field
        return None
