"""
Change notifications coming in, delta events going out.

A notification is what the ``notify_table_change()`` trigger sends:
``{"table": ..., "type": "INSERT" | "UPDATE" | "DELETE", "record": {...},
"old_record": {...}}``. Older producers used ``eventType`` / ``new`` / ``old``;
both spellings are accepted.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi.encoders import jsonable_encoder
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


class ChangePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    table: str
    type: Literal["INSERT", "UPDATE", "DELETE"] = Field(validation_alias=AliasChoices("type", "eventType", "event"))
    record: Optional[Dict[str, Any]] = Field(default=None, validation_alias=AliasChoices("record", "new"))
    old_record: Optional[Dict[str, Any]] = Field(default=None, validation_alias=AliasChoices("old_record", "old"))
    db_schema: str = Field(default="public", validation_alias=AliasChoices("schema", "db_schema"))
    # set by the trigger when the row was too large for NOTIFY; only key columns remain
    truncated: bool = False

    @field_validator("type", mode="before")
    def _upper(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("record", "old_record", mode="before")
    def _empty_is_none(cls, v):
        return v or None

    @model_validator(mode="after")
    def _row_present(self):
        row = self.old_record if self.type == DELETE else self.record
        if self.type == DELETE and row is None:
            row = self.record
        if not row or row.get("id") is None:
            raise ValueError(f"{self.type} on {self.table} carries no row id")
        return self

    @property
    def row(self) -> Dict[str, Any]:
        """
        The row the change is about: the new row, or the old one for deletes.
        """
        if self.type == DELETE:
            return self.old_record or self.record or {}
        return self.record or {}

    @property
    def row_id(self) -> Any:
        return self.row.get("id")

    def changed(self, column: str) -> Optional[bool]:
        """
        Whether ``column`` changed in an UPDATE; None when the old row is unknown.
        """
        if self.old_record is None or self.record is None:
            return None
        return self.old_record.get(column) != self.record.get(column)


def parse_change(raw: Union[str, bytes, Dict[str, Any]]) -> ChangePayload:
    """
    Raises ValueError (pydantic's ValidationError included) on anything that
    is not a well-formed change notification.
    """
    if isinstance(raw, (str, bytes)):
        raw = json.loads(raw)
    if not isinstance(raw, dict):
        raise ValueError(f"change payload must be an object, got {type(raw).__name__}")
    return ChangePayload.model_validate(raw)


@dataclass(frozen=True)
class DeltaEvent:
    """
    One change applied to a client collection. ``kind`` is insert, update,
    delete, replace (whole collection swapped after a refetch) or settled
    (a table's burst of changes has gone quiet).
    """
    collection: str
    kind: str
    item_id: Any = None
    item: Optional[Dict[str, Any]] = None
    items: Optional[List[Dict[str, Any]]] = None
    source_table: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> Dict[str, Any]:
        return jsonable_encoder({
            "collection": self.collection,
            "kind": self.kind,
            "id": self.item_id,
            "item": self.item,
            "items": self.items,
            "table": self.source_table,
            **({"meta": self.meta} if self.meta else {}),
        })
