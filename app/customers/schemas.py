import re
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field, ValidationInfo, field_validator

from app.config import settings
from app.customers.models import AccountStatus, Gender, PaymentTerms, Segment, UserType
from app.imports.models import ImportMode
from app.imports.schemas import BaseExportRequest, ImportResult
from app.imports.validators import (
    FlexibleDate,
    FlexibleFloat,
    OptionalText,
    TagList,
    case_insensitive,
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    email = value.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email address")
    return email


class CustomerImportRow(BaseModel):
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    email: str = Field(max_length=255)

    display_name: Annotated[OptionalText, Field(max_length=100)] = None
    phone_number: Annotated[OptionalText, Field(max_length=20)] = None
    secondary_email: OptionalText = None
    secondary_phone_number: Annotated[OptionalText, Field(max_length=20)] = None
    date_of_birth: FlexibleDate = None
    gender: Annotated[Gender | None, BeforeValidator(case_insensitive)] = None
    user_type: UserType = UserType.individual
    tags: TagList = None

    segment: Annotated[Segment | None, BeforeValidator(case_insensitive)] = None
    account_status: AccountStatus = AccountStatus.active
    notes: OptionalText = None

    company_name: Annotated[OptionalText, Field(max_length=255)] = None
    tax_id: Annotated[OptionalText, Field(max_length=50)] = None
    credit_limit: Annotated[FlexibleFloat, Field(ge=0)] = None
    payment_terms: Annotated[PaymentTerms | None, BeforeValidator(case_insensitive)] = None

    address_name: Annotated[OptionalText, Field(max_length=255)] = None
    address_line1: Annotated[OptionalText, Field(max_length=255)] = None
    address_line2: Annotated[OptionalText, Field(max_length=255)] = None
    city: Annotated[OptionalText, Field(max_length=100)] = None
    state_province: Annotated[OptionalText, Field(max_length=100)] = None
    postal_code: Annotated[OptionalText, Field(max_length=20)] = None
    country: Annotated[OptionalText, Field(max_length=100)] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _strip_names(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("user_type", "account_status", mode="before")
    @classmethod
    def _blank_to_default(cls, value: object, info: ValidationInfo) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return case_insensitive(value)

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: object) -> object:
        return _normalize_email(value) if isinstance(value, str) else value

    @field_validator("secondary_email")
    @classmethod
    def _check_secondary_email(cls, value: str | None) -> str | None:
        return _normalize_email(value)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_address(self) -> bool:
        return bool(self.address_line1 and self.city and self.state_province)


class CustomerImportRequest(BaseModel):
    data: list[CustomerImportRow] = Field(min_length=1, max_length=settings.import_max_rows)
    mode: ImportMode = ImportMode.create


class CustomerImportResponse(BaseModel):
    result: ImportResult
    summary: str
    error_summary: list[str]


class CustomerResponse(BaseModel):
    id: str
    customer_id: str
    first_name: str
    last_name: str
    display_name: str | None
    email: str
    user_type: str
    phone_number: str | None
    date_of_birth: str | None
    gender: str | None
    tags: list[str]
    segment: str | None
    account_status: str | None
    created_at: str
    updated_at: str


EXPORT_COLUMNS = [
    "customer_id",
    "first_name",
    "last_name",
    "display_name",
    "email",
    "user_type",
    "phone_number",
    "date_of_birth",
    "gender",
    "tags",
    "segment",
    "account_status",
    "created_at",
    "updated_at",
]


class CustomerExportFilters(BaseModel):
    status: Annotated[AccountStatus | None, BeforeValidator(case_insensitive)] = None
    gender: Annotated[Gender | None, BeforeValidator(case_insensitive)] = None


class CustomerExportRequest(BaseExportRequest):
    selected_columns: list[str] = Field(default_factory=lambda: list(EXPORT_COLUMNS), min_length=1)
    filters: CustomerExportFilters = Field(default_factory=CustomerExportFilters)

    @field_validator("selected_columns")
    @classmethod
    def _known_columns(cls, value: list[str]) -> list[str]:
        unknown = [column for column in value if column not in EXPORT_COLUMNS]
        if unknown:
            raise ValueError(f"Unknown export columns: {', '.join(unknown)}")
        return value
