import secrets
import string
import time
from collections.abc import Mapping, Sequence
from typing import Any
from uuid import uuid4

import structlog
from pydantic import ValidationError as SchemaValidationError

from app.cache import CacheService, cache_keys
from app.config import settings
from app.customers.models import UserType
from app.customers.repository import CustomerRepository
from app.customers.schemas import (
    CustomerExportRequest,
    CustomerImportResponse,
    CustomerImportRow,
    CustomerResponse,
)
from app.exceptions import NotFoundError
from app.imports.aggregator import (
    batch_process_import,
    format_import_summary,
    get_import_error_summary,
)
from app.imports.export import ExportFile, format_export_data, render_export
from app.imports.models import ExportDateField, ExportScope, ImportMode
from app.imports.schemas import RowOutcome

logger = structlog.get_logger()

CUSTOMER_ID_PREFIX = "CUST-"
CUSTOMER_ID_ALPHABET = string.ascii_uppercase + string.digits
CUSTOMER_ID_LENGTH = 6
CUSTOMER_ID_MAX_ATTEMPTS = 10

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _describe_validation_error(exc: SchemaValidationError) -> tuple[str, str | None]:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    return first["msg"], field


class CustomerService:
    def __init__(self, repo: CustomerRepository, cache: CacheService) -> None:
        self._repo = repo
        self._cache = cache

    async def get_customer(self, customer_ref: str) -> CustomerResponse:
        key = cache_keys.customer(customer_ref)
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("customer_cache_hit", customer_ref=customer_ref)
            return CustomerResponse.model_validate(cached)

        row = await self._repo.get_by_id(customer_ref)
        if row is None:
            raise NotFoundError("Customer", customer_ref)

        customer = CustomerResponse.model_validate(row)
        await self._cache.set(key, customer.model_dump(mode="json"), settings.cache_default_ttl)
        return customer

    async def list_customers(self, limit: int = 50, offset: int = 0) -> list[CustomerResponse]:
        rows = await self._repo.list_customers(limit, offset)
        return [CustomerResponse.model_validate(row) for row in rows]

    async def export_customers(self, request: CustomerExportRequest) -> ExportFile:
        date_range = request.date_range
        rows = await self._repo.export_customers(
            ids=request.selected_ids if request.scope == ExportScope.selected else None,
            gender=request.filters.gender,
            account_status=request.filters.status,
            date_field=date_range.field if date_range else ExportDateField.created_at,
            date_from=date_range.lower_bound if date_range else None,
            date_before=date_range.upper_bound if date_range else None,
        )
        formatted = format_export_data(rows, columns=request.selected_columns)

        logger.info(
            "customer_export_generated",
            format=str(request.format),
            scope=str(request.scope),
            rows=len(formatted),
        )
        return render_export(
            formatted,
            request.selected_columns,
            request.format,
            base_filename="customers",
            sheet_name="Customers",
        )

    async def import_customers(
        self,
        rows: Sequence[CustomerImportRow | Mapping[str, Any]],
        mode: ImportMode,
        user_id: str | None = None,
    ) -> CustomerImportResponse:
        async def import_fn(row: Any, row_mode: ImportMode, index: int) -> RowOutcome:
            return await self.import_row(row, row_mode, index, user_id=user_id)

        result = await batch_process_import(
            rows,
            import_fn,
            mode,
            batch_size=settings.import_batch_size,
            on_progress=self._log_progress,
        )

        summary = format_import_summary(result)
        logger.info(
            "customer_import_completed",
            mode=str(mode),
            success=result.success,
            failed=result.failed,
            skipped=result.skipped,
        )
        return CustomerImportResponse(
            result=result,
            summary=summary,
            error_summary=get_import_error_summary(result, settings.import_max_errors),
        )

    async def import_row(
        self,
        row: CustomerImportRow | Mapping[str, Any],
        mode: ImportMode,
        index: int,
        user_id: str | None = None,
    ) -> RowOutcome:
        """Import a single customer. Business failures come back as outcomes, never raised."""
        if not isinstance(row, CustomerImportRow):
            try:
                row = CustomerImportRow.model_validate(row)
            except SchemaValidationError as exc:
                message, field = _describe_validation_error(exc)
                return RowOutcome(success=False, error=message, field=field)

        try:
            async with self._repo.transaction():
                existing_ref = await self._repo.find_id_by_email(row.email)

                if mode == ImportMode.create and existing_ref is not None:
                    return RowOutcome(success=False, skipped=True, error="Email already exists")
                if mode == ImportMode.update and existing_ref is None:
                    return RowOutcome(success=False, error="Customer not found")

                if existing_ref is None:
                    customer_ref = await self._create(row, user_id)
                else:
                    customer_ref = existing_ref
                    await self._update(customer_ref, row, user_id)
        except Exception as exc:
            logger.warning("customer_import_row_failed", row=index + 1, error=str(exc))
            return RowOutcome(success=False, error=str(exc) or "Unknown error occurred")

        await self._cache.delete(cache_keys.customer(customer_ref))
        return RowOutcome(success=True, record_id=customer_ref)

    async def _create(self, row: CustomerImportRow, user_id: str | None) -> str:
        customer_ref = str(uuid4())
        await self._repo.insert_customer(
            {
                "id": customer_ref,
                "customer_id": await self._generate_customer_id(),
                "first_name": row.first_name,
                "last_name": row.last_name,
                "display_name": row.display_name or row.full_name,
                "email": row.email,
                "user_type": row.user_type,
                "phone_number": row.phone_number,
                "secondary_email": row.secondary_email,
                "secondary_phone_number": row.secondary_phone_number,
                "date_of_birth": row.date_of_birth,
                "gender": row.gender,
                "tags": row.tags,
                "created_by": user_id,
            }
        )

        profile: dict[str, Any] = {
            "account_status": row.account_status,
            "notes": row.notes,
            "updated_by": user_id,
        }
        if row.user_type == UserType.business:
            profile.update(
                company_legal_name=row.company_name or "Not Provided",
                tax_id=row.tax_id,
                credit_limit=row.credit_limit,
                payment_terms=row.payment_terms,
            )
        else:
            profile.update(segment=row.segment, email_opt_in=True)
        await self._repo.insert_profile(customer_ref, profile)

        if row.has_address:
            await self._repo.insert_address(
                {
                    "id": str(uuid4()),
                    "customer_ref": customer_ref,
                    "is_default": True,
                    "recipient_name": row.address_name or row.full_name,
                    "address_line1": row.address_line1,
                    "address_line2": row.address_line2,
                    "city": row.city,
                    "state_province": row.state_province,
                    "postal_code": row.postal_code or settings.default_postal_code,
                    "country": row.country or settings.default_country,
                }
            )

        logger.debug("customer_created", customer_ref=customer_ref)
        return customer_ref

    async def _update(self, customer_ref: str, row: CustomerImportRow, user_id: str | None) -> None:
        optional = (
            "display_name",
            "phone_number",
            "secondary_email",
            "secondary_phone_number",
            "date_of_birth",
            "gender",
            "tags",
        )
        fields: dict[str, Any] = {
            "first_name": row.first_name,
            "last_name": row.last_name,
            "updated_by": user_id,
        }
        fields.update({name: getattr(row, name) for name in optional if getattr(row, name)})
        await self._repo.update_customer(customer_ref, fields)

        profile: dict[str, Any] = {"account_status": row.account_status, "updated_by": user_id}
        if row.notes:
            profile["notes"] = row.notes

        if await self._repo.get_user_type(customer_ref) == UserType.business:
            if row.company_name:
                profile["company_legal_name"] = row.company_name
            if row.tax_id:
                profile["tax_id"] = row.tax_id
            if row.credit_limit is not None:
                profile["credit_limit"] = row.credit_limit
            if row.payment_terms:
                profile["payment_terms"] = row.payment_terms
        elif row.segment:
            profile["segment"] = row.segment

        await self._repo.update_profile(customer_ref, profile)
        logger.debug("customer_updated", customer_ref=customer_ref)

    async def _generate_customer_id(self) -> str:
        for _ in range(CUSTOMER_ID_MAX_ATTEMPTS):
            code = "".join(secrets.choice(CUSTOMER_ID_ALPHABET) for _ in range(CUSTOMER_ID_LENGTH))
            candidate = f"{CUSTOMER_ID_PREFIX}{code}"
            if not await self._repo.customer_id_exists(candidate):
                return candidate

        return f"{CUSTOMER_ID_PREFIX}{_to_base36(time.time_ns() // 1_000_000)}"

    @staticmethod
    def _log_progress(processed: int, total: int) -> None:
        logger.info("customer_import_progress", processed=processed, total=total)
