from typing import Annotated

import aiosqlite
from fastapi import Depends

from app.auth import verify_token
from app.cache.service import CacheService, cache_service
from app.customers.repository import CustomerRepository
from app.customers.service import CustomerService
from app.database import get_db

DBConn = Annotated[aiosqlite.Connection, Depends(get_db)]
APIKey = Annotated[dict, Depends(verify_token)]


def get_cache_service() -> CacheService:
    return cache_service


def get_customer_repo() -> CustomerRepository:
    return CustomerRepository(get_db())


def get_customer_service() -> CustomerService:
    return CustomerService(get_customer_repo(), get_cache_service())


CacheServiceDep = Annotated[CacheService, Depends(get_cache_service)]
CustomerRepoDep = Annotated[CustomerRepository, Depends(get_customer_repo)]
CustomerServiceDep = Annotated[CustomerService, Depends(get_customer_service)]
