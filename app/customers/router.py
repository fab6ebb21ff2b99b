from fastapi import APIRouter, Query, Response, UploadFile

from app.config import settings
from app.customers.schemas import (
    CustomerExportRequest,
    CustomerImportRequest,
    CustomerImportResponse,
    CustomerResponse,
)
from app.dependencies import APIKey, CustomerServiceDep
from app.exceptions import ValidationError
from app.imports.csv_reader import read_csv_rows
from app.imports.models import ImportMode

router = APIRouter()


@router.post("/import", response_model=CustomerImportResponse)
async def import_customers(
    data: CustomerImportRequest,
    service: CustomerServiceDep,
    token: APIKey,
) -> CustomerImportResponse:
    return await service.import_customers(data.data, data.mode, user_id=token.get("sub"))


@router.post("/import/csv", response_model=CustomerImportResponse)
async def import_customers_csv(
    file: UploadFile,
    service: CustomerServiceDep,
    token: APIKey,
    mode: ImportMode = ImportMode.create,
) -> CustomerImportResponse:
    content = await file.read()
    rows = read_csv_rows(content, file.filename or "customers.csv")

    if not rows:
        raise ValidationError("CSV file contains no data rows")
    if len(rows) > settings.import_max_rows:
        raise ValidationError(
            f"CSV file has {len(rows)} rows; at most {settings.import_max_rows} can be imported"
        )

    return await service.import_customers(rows, mode, user_id=token.get("sub"))


@router.get("/", response_model=list[CustomerResponse])
async def list_customers(
    service: CustomerServiceDep,
    _api_key: APIKey,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[CustomerResponse]:
    return await service.list_customers(limit, offset)


@router.post("/export")
async def export_customers(
    options: CustomerExportRequest,
    service: CustomerServiceDep,
    _api_key: APIKey,
) -> Response:
    export = await service.export_customers(options)
    return Response(content=export.content, media_type=export.media_type, headers=export.headers)


@router.get("/export/csv")
async def export_customers_csv(
    service: CustomerServiceDep,
    _api_key: APIKey,
) -> Response:
    export = await service.export_customers(CustomerExportRequest())
    return Response(content=export.content, media_type=export.media_type, headers=export.headers)


@router.get("/{customer_ref}", response_model=CustomerResponse)
async def get_customer(
    customer_ref: str,
    service: CustomerServiceDep,
    _api_key: APIKey,
) -> CustomerResponse:
    return await service.get_customer(customer_ref)
