"""Request bodies for the report endpoints.

Required fields are checked by the workflow engine, not here; the bodies only
bound the short text fields to their column widths. Bodies accept snake_case
or camelCase.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.workflow import (
    CreateReportPayload,
    FieldReviewPayload,
    OfficeApprovePayload,
    OfficeRejectPayload,
    ResubmitPayload,
    ReviewAction,
)


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# column widths of the reports table
DATE_LEN = 20
CODE_LEN = 40
NAME_LEN = 80


class CreateReportRequest(_Body):
    report_date: str | None = Field(None, max_length=DATE_LEN)
    container_no: str | None = Field(None, max_length=CODE_LEN)
    bl_no: str | None = Field(None, max_length=CODE_LEN)
    vehicle_no: str | None = Field(None, max_length=CODE_LEN)
    driver_name: str | None = Field(None, max_length=NAME_LEN)
    driver_phone: str | None = Field(None, max_length=CODE_LEN)
    driver_damage: str | None = None
    driver_signature: str | None = None
    damage_photos: list[str] | None = None

    def to_payload(self) -> CreateReportPayload:
        return CreateReportPayload(**self.model_dump())


class ResubmitRequest(_Body):
    driver_damage: str | None = None
    driver_signature: str | None = None
    damage_photos: list[str] | None = None

    def to_payload(self) -> ResubmitPayload:
        return ResubmitPayload(**self.model_dump())


class FieldReviewRequest(_Body):
    action: Literal["approve", "reject"]
    field_staff: str | None = Field(None, max_length=NAME_LEN)
    field_phone: str | None = Field(None, max_length=CODE_LEN)
    field_damage: str | None = None
    field_signature: str | None = None
    rejection_reason: str | None = None

    def to_payload(self) -> FieldReviewPayload:
        data = self.model_dump()
        data["action"] = ReviewAction(data["action"])
        return FieldReviewPayload(**data)


class OfficeApproveRequest(_Body):
    office_staff: str | None = Field(None, max_length=NAME_LEN)
    office_phone: str | None = Field(None, max_length=CODE_LEN)
    office_damage: str | None = None
    office_signature: str | None = None

    def to_payload(self) -> OfficeApprovePayload:
        return OfficeApprovePayload(**self.model_dump())


class OfficeRejectRequest(_Body):
    rejection_reason: str | None = None
    office_staff: str | None = Field(None, max_length=NAME_LEN)

    def to_payload(self) -> OfficeRejectPayload:
        return OfficeRejectPayload(**self.model_dump())
