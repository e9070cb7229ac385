"""
Resource descriptors: the per-entity configuration behind every CRUD call.

A descriptor names the table, its primary key and the column whitelist. It is
validated once when it is built, so the query helpers can trust it on every
call instead of re-deriving it.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator, model_validator

WILDCARD = "*"


class ResourceDescriptor(BaseModel):
    """
    Table name, primary key and field whitelists for one resource.
    """

    table: str = Field(..., min_length=1, description="Table the resource lives in.")
    primary_key: str = Field("id", min_length=1, description="Unique row identifier column.")
    all_fields: Dict[str, Any] = Field(
        default_factory=dict,
        description="Column name -> default/type marker; the read/write whitelist.",
    )
    required_fields: Tuple[str, ...] = Field(
        default=(), description="Columns that must be present on insert."
    )
    list_fields: Union[Tuple[str, ...], str] = Field(
        default=WILDCARD, description="Default column subset for list/select operations."
    )
    action: Optional[str] = Field(None, description="Label attached to log lines.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @field_validator("list_fields")
    @classmethod
    def wildcard_or_columns(cls, value: Union[Tuple[str, ...], str]) -> Union[Tuple[str, ...], str]:
        if isinstance(value, str) and value != WILDCARD:
            return (value,)
        return value

    @model_validator(mode="after")
    def fields_are_whitelisted(self) -> "ResourceDescriptor":
        unknown = [f for f in self.required_fields if f not in self.all_fields]
        if unknown:
            raise ValueError(f"required_fields not in all_fields: {unknown}")
        if self.list_fields != WILDCARD:
            unknown = [f for f in self.list_fields if f not in self.all_fields]
            if unknown:
                raise ValueError(f"list_fields not in all_fields: {unknown}")
        return self

    @property
    def label(self) -> str:
        return self.action or self.table


__all__ = ["ResourceDescriptor"]
