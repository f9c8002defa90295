"""
Pydantic schemas for the portal backend.

Request models mirror the validation the public forms apply, with the same
Amharic messages, so a client that skips its own checks gets the same errors.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from portal_backend import errors

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

QRETA_CATEGORIES = ("complaint", "suggestion", "corruption", "service", "other")

PHONE_MESSAGE = "የሞባይል ቁጥር ትክክለኛ አይደለም"
WOREDA_MESSAGE = "ወረዳ ማስገባት አለብዎት"


def _require_min(value: str, length: int, msg: str) -> str:
    if len(value) < length:
        raise ValueError(msg)
    return value


def _optional_email(value: Optional[str], msg: str) -> Optional[str]:
    if value is None or value == "":
        return None
    if not EMAIL_RE.match(value):
        raise ValueError(msg)
    return value


class _FormModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class QretaSubmissionIn(_FormModel):
    full_name: str
    phone: str
    email: Optional[str] = None
    category: str
    woreda: str
    kebele: str
    message: str

    @field_validator("full_name")
    @classmethod
    def _check_full_name(cls, v: str) -> str:
        return _require_min(v, 2, "ሙሉ ስም መጻፍ አለብዎት")

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, v: str) -> str:
        return _require_min(v, 10, PHONE_MESSAGE)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: Optional[str]) -> Optional[str]:
        return _optional_email(v, "የኢሜይል አድራሻ ትክክለኛ አይደለም")

    @field_validator("category")
    @classmethod
    def _check_category(cls, v: str) -> str:
        if v not in QRETA_CATEGORIES:
            raise ValueError("ምድብ መምረጥ አለብዎት")
        return v

    @field_validator("woreda")
    @classmethod
    def _check_woreda(cls, v: str) -> str:
        return _require_min(v, 1, WOREDA_MESSAGE)

    @field_validator("kebele")
    @classmethod
    def _check_kebele(cls, v: str) -> str:
        return _require_min(v, 1, "ብሎክ ማስገባት አለብዎት")

    @field_validator("message")
    @classmethod
    def _check_message(cls, v: str) -> str:
        return _require_min(v, 10, "ቢያንስ 10 ፊደላት መጻፍ አለብዎት")


class ReportSubmissionIn(_FormModel):
    full_name: str
    phone: str
    email: Optional[str] = None
    woreda: str
    kebele: str
    report_type: str
    report_details: str = ""

    @field_validator("full_name")
    @classmethod
    def _check_full_name(cls, v: str) -> str:
        return _require_min(v, 1, "ሙሉ ስም ማስገባት አለብዎት")

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, v: str) -> str:
        return _require_min(v, 10, PHONE_MESSAGE)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: Optional[str]) -> Optional[str]:
        return _optional_email(v, "የኢሜይል አድራሻ ትክክለኛ አይደለም")

    @field_validator("woreda")
    @classmethod
    def _check_woreda(cls, v: str) -> str:
        return _require_min(v, 1, WOREDA_MESSAGE)

    @field_validator("kebele")
    @classmethod
    def _check_kebele(cls, v: str) -> str:
        return _require_min(v, 1, "ቀበሌ ማስገባት አለብዎት")

    @field_validator("report_type")
    @classmethod
    def _check_report_type(cls, v: str) -> str:
        return _require_min(v, 1, "የሪፖርት አይነት ማስገባት አለብዎት")


class MembershipApplicationIn(_FormModel):
    full_name: str
    phone: str
    email: Optional[str] = None
    woreda: str
    kebele: str
    age: int
    education_level: str
    occupation: str

    @field_validator("full_name")
    @classmethod
    def _check_full_name(cls, v: str) -> str:
        return _require_min(v, 2, "ሙሉ ስም መጻፍ አለብዎት")

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, v: str) -> str:
        return _require_min(v, 10, PHONE_MESSAGE)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: Optional[str]) -> Optional[str]:
        return _optional_email(v, "የኢሜይል አድራሻ ትክክለኛ አይደለም")

    @field_validator("woreda")
    @classmethod
    def _check_woreda(cls, v: str) -> str:
        return _require_min(v, 1, WOREDA_MESSAGE)

    @field_validator("kebele")
    @classmethod
    def _check_kebele(cls, v: str) -> str:
        return _require_min(v, 1, "ቀበሌ ማስገባት አለብዎት")

    @field_validator("age")
    @classmethod
    def _check_age(cls, v: int) -> int:
        if not 18 <= v <= 120:
            raise ValueError("እድሜ ትክክል አይደለም")
        return v

    @field_validator("education_level")
    @classmethod
    def _check_education(cls, v: str) -> str:
        return _require_min(v, 1, "የትምህርት ደረጃ ማስገባት አለብዎት")

    @field_validator("occupation")
    @classmethod
    def _check_occupation(cls, v: str) -> str:
        return _require_min(v, 1, "ስራ ማስገባት አለብዎት")


class StatusUpdateIn(BaseModel):
    status: Literal["accepted", "rejected"]


class LoginIn(_FormModel):
    email: str
    password: str


class AdminCreateIn(_FormModel):
    email: str
    password: str
    confirm_password: str

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        if not EMAIL_RE.match(v):
            raise ValueError(errors.message("invalid_email"))
        return v

    @field_validator("password")
    @classmethod
    def _check_password(cls, v: str) -> str:
        return _require_min(v, 6, errors.message("password_too_short"))

    @model_validator(mode="after")
    def _check_confirmation(self) -> "AdminCreateIn":
        if self.password != self.confirm_password:
            raise ValueError(errors.message("password_mismatch"))
        return self


class _RecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MemberOut(_RecordOut):
    id: str
    first_name: str
    father_name: str
    grand_father_name: str
    gender: str
    age: Optional[int] = None
    date_of_birth: Optional[str] = None
    phone: str
    email: str
    subcity: str
    woreda: str
    kebele: Optional[str] = None
    house_number: Optional[str] = None
    education_level: Optional[str] = None
    occupation: Optional[str] = None
    membership_date: Optional[str] = None
    membership_fee_paid: Optional[bool] = None
    membership_id: Optional[str] = None
    status: str
    uploaded_by_email: Optional[str] = None
    created_at: datetime


class MembershipApplicationOut(_RecordOut):
    id: str
    full_name: str
    phone: str
    email: Optional[str] = None
    woreda: str
    kebele: str
    age: int
    education_level: str
    occupation: str
    status: str
    created_at: datetime


class QretaOut(_RecordOut):
    id: str
    full_name: str
    phone: str
    email: Optional[str] = None
    category: str
    woreda: str
    kebele: str
    message: str
    file_url: Optional[str] = None
    created_at: datetime


class ReportOut(_RecordOut):
    id: str
    full_name: str
    phone: str
    email: Optional[str] = None
    woreda: str
    kebele: str
    report_type: str
    report_details: str
    file_url: Optional[str] = None
    created_at: datetime


class MemberPageResponse(BaseModel):
    items: list[MemberOut]
    page: int
    page_count: int
    total: int


class UploadStats(BaseModel):
    total: int
    inserted: int
    duplicates: int
    invalid: int


class MemberUploadResponse(BaseModel):
    stats: UploadStats
    members: list[MemberOut]


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    email: str
    is_admin: bool


class SessionResponse(BaseModel):
    email: str
    is_admin: bool


class AdminCreateResponse(BaseModel):
    status: Literal["created", "exists"]
    email: str
    message: str


class AdminListResponse(BaseModel):
    admins: list[str]


class DashboardResponse(BaseModel):
    members: int
    applications: int
    applications_pending: int
    applications_accepted: int
    applications_rejected: int
    qreta: int
    reports: int


class NavLink(BaseModel):
    path: str
    label: str
    children: list["NavLink"] = []


class NavigationResponse(BaseModel):
    title: str
    links: list[NavLink]
