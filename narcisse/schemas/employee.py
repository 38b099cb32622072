"""Employee and employee-document Pydantic schemas."""


import datetime as dt
from typing import Any, Literal

from pydantic import Field, field_validator

from narcisse.schemas.common import CamelModel, UtcDateTime, clean_string, strip_script_tags
from narcisse.services.phone import normalize_incoming

DocumentCategory = Literal["CONTRACT", "ID", "CERTIFICATE", "PAYSLIP", "OTHER"]


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------

class EmployeeCreate(CamelModel):
    first_name: str = Field(min_length=1, max_length=60)
    last_name: str = Field(min_length=1, max_length=60)
    email: str = Field(min_length=3, max_length=120)
    phone: str | None = None
    password: str
    role: Literal["EMPLOYEE", "ADMIN", "SUPERADMIN"] = "EMPLOYEE"
    hire_date: dt.date | None = None
    department: str | None = Field(default=None, max_length=100)
    job_title: str | None = Field(default=None, max_length=100)
    admin_permissions: dict[str, Any] | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _clean_name(cls, value: Any) -> Any:
        return clean_string(value, 60) if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def _lower_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("phone", mode="before")
    @classmethod
    def _phone(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            return None
        value = value.strip()
        return normalize_incoming(value) if value.startswith("+") else value


class EmployeeOut(CamelModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    role: str
    is_active: bool
    employee_number: str | None = None
    job_title: str | None = None
    department: str | None = None
    hire_date: dt.date | None = None
    employment_end_date: UtcDateTime | None = None
    archive_reason: str | None = None
    manager_id: str | None = None
    admin_permissions: dict[str, Any] | None = None
    created_at: UtcDateTime


class EmployeeDirectoryEntry(CamelModel):
    """What an EMPLOYEE may see about colleagues."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    role: str
    job_title: str | None = None
    department: str | None = None
    employee_number: str | None = None


class ArchiveRequest(CamelModel):
    reason: str | None = Field(default=None, max_length=500)
    employment_end_date: UtcDateTime | None = None

    @field_validator("reason", mode="before")
    @classmethod
    def _clean_reason(cls, value: Any) -> Any:
        return strip_script_tags(clean_string(value, 500)) if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class DocumentUploadRequest(CamelModel):
    user_id: str
    category: DocumentCategory
    file_name: str = Field(min_length=1, max_length=200)
    mime_type: str = Field(min_length=1, max_length=100)
    size: int = Field(gt=0)
    checksum: str | None = Field(default=None, max_length=128)
    expires_at: UtcDateTime | None = None


class DocumentIdRequest(CamelModel):
    document_id: str


class DocumentOut(CamelModel):
    id: str
    user_id: str
    uploaded_by_id: str | None = None
    category: str
    file_name: str
    mime_type: str
    size: int
    storage_key: str
    version: int
    status: str
    expires_at: UtcDateTime | None = None
    uploaded_at: UtcDateTime | None = None
    archived_at: UtcDateTime | None = None
    created_at: UtcDateTime


class UploadUrlResponse(CamelModel):
    upload_url: str
    expires_in: int
    document: DocumentOut


class DownloadUrlResponse(CamelModel):
    url: str
    expires_in: int
    file_name: str


# ---------------------------------------------------------------------------
# Work hours
# ---------------------------------------------------------------------------

class WorkShiftCreate(CamelModel):
    user_id: str
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    start: str = Field(pattern=r"^\d{2}:\d{2}$")
    end: str = Field(pattern=r"^\d{2}:\d{2}$")
    break_time: int = Field(default=0, ge=0, le=720)  # minutes
    note: str | None = Field(default=None, max_length=500)

    @field_validator("note", mode="before")
    @classmethod
    def _clean_note(cls, value: Any) -> Any:
        return strip_script_tags(clean_string(value, 500)) or None if isinstance(value, str) else value


class WorkShiftOut(CamelModel):
    id: str
    user_id: str
    start_time: UtcDateTime
    end_time: UtcDateTime
    break_minutes: int
    note: str | None = None


class HoursReportRow(CamelModel):
    user: EmployeeDirectoryEntry
    total_minutes: int
    total_hours: float
    shifts_count: int
    details: list[WorkShiftOut]
