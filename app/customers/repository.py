import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import aiosqlite
import structlog

from app.database import write_lock

logger = structlog.get_logger()

_CUSTOMER_COLUMNS = """
    c.id, c.customer_id, c.first_name, c.last_name, c.display_name, c.email,
    c.user_type, c.phone_number, c.date_of_birth, c.gender, c.tags,
    c.created_at, c.updated_at, p.segment, p.account_status
"""


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _row_to_dict(row: aiosqlite.Row) -> dict:
    data = dict(row)
    data["tags"] = json.loads(data["tags"]) if data.get("tags") else []
    return data


class CustomerRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Serialise a check-then-write unit on the shared connection and commit it atomically.

        The lock belongs to the connection, so units from every repository (and every
        concurrent request) built on it are serialised together.
        """
        async with write_lock(self._db):
            try:
                yield
            except BaseException:
                await self._db.rollback()
                raise
            await self._db.commit()

    async def get_by_id(self, customer_ref: str) -> dict | None:
        cursor = await self._db.execute(
            f"""
            SELECT {_CUSTOMER_COLUMNS}
            FROM customers c
            LEFT JOIN customer_profiles p ON p.customer_ref = c.id
            WHERE c.id = ? AND c.is_deleted = 0
            """,
            (customer_ref,),
        )
        row = await cursor.fetchone()
        return _row_to_dict(row) if row is not None else None

    async def find_id_by_email(self, email: str) -> str | None:
        cursor = await self._db.execute(
            "SELECT id FROM customers WHERE email = ? AND is_deleted = 0 LIMIT 1",
            (email,),
        )
        row = await cursor.fetchone()
        return row["id"] if row is not None else None

    async def get_user_type(self, customer_ref: str) -> str | None:
        cursor = await self._db.execute(
            "SELECT user_type FROM customers WHERE id = ?",
            (customer_ref,),
        )
        row = await cursor.fetchone()
        return row["user_type"] if row is not None else None

    async def customer_id_exists(self, customer_id: str) -> bool:
        cursor = await self._db.execute(
            "SELECT 1 FROM customers WHERE customer_id = ? LIMIT 1",
            (customer_id,),
        )
        return await cursor.fetchone() is not None

    async def list_customers(self, limit: int = 50, offset: int = 0) -> list[dict]:
        cursor = await self._db.execute(
            f"""
            SELECT {_CUSTOMER_COLUMNS}
            FROM customers c
            LEFT JOIN customer_profiles p ON p.customer_ref = c.id
            WHERE c.is_deleted = 0
            ORDER BY c.created_at DESC, c.customer_id
            LIMIT ? OFFSET ?
            """,
            (limit, offset),
        )
        rows = await cursor.fetchall()
        return [_row_to_dict(row) for row in rows]

    async def export_customers(
        self,
        *,
        ids: list[str] | None = None,
        gender: str | None = None,
        account_status: str | None = None,
        date_field: str = "created_at",
        date_from: str | None = None,
        date_before: str | None = None,
    ) -> list[dict]:
        """Select customers for export. Date bounds compare against stored ISO timestamps."""
        if date_field not in ("created_at", "updated_at"):
            raise ValueError(f"Cannot filter on {date_field!r}")

        conditions = ["c.is_deleted = 0"]
        params: list[Any] = []
        if ids:
            conditions.append(f"c.id IN ({', '.join('?' for _ in ids)})")
            params.extend(ids)
        if gender:
            conditions.append("c.gender = ?")
            params.append(gender)
        if account_status:
            conditions.append("p.account_status = ?")
            params.append(account_status)
        if date_from:
            conditions.append(f"c.{date_field} >= ?")
            params.append(date_from)
        if date_before:
            conditions.append(f"c.{date_field} < ?")
            params.append(date_before)

        cursor = await self._db.execute(
            f"""
            SELECT {_CUSTOMER_COLUMNS}
            FROM customers c
            LEFT JOIN customer_profiles p ON p.customer_ref = c.id
            WHERE {" AND ".join(conditions)}
            ORDER BY c.created_at, c.customer_id
            """,
            params,
        )
        rows = await cursor.fetchall()
        return [_row_to_dict(row) for row in rows]

    async def insert_customer(self, customer: dict[str, Any]) -> None:
        now = _now()
        await self._db.execute(
            """
            INSERT INTO customers (
                id, customer_id, first_name, last_name, display_name, email, user_type,
                phone_number, secondary_email, secondary_phone_number, date_of_birth,
                gender, tags, created_by, updated_by, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                customer["id"],
                customer["customer_id"],
                customer["first_name"],
                customer["last_name"],
                customer.get("display_name"),
                customer["email"],
                customer["user_type"],
                customer.get("phone_number"),
                customer.get("secondary_email"),
                customer.get("secondary_phone_number"),
                customer.get("date_of_birth"),
                customer.get("gender"),
                json.dumps(customer["tags"]) if customer.get("tags") is not None else None,
                customer.get("created_by"),
                customer.get("created_by"),
                now,
                now,
            ),
        )

    async def insert_profile(self, customer_ref: str, profile: dict[str, Any]) -> None:
        await self._db.execute(
            """
            INSERT INTO customer_profiles (
                customer_ref, segment, account_status, notes, email_opt_in,
                company_legal_name, tax_id, credit_limit, payment_terms,
                updated_by, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                customer_ref,
                profile.get("segment"),
                profile.get("account_status", "active"),
                profile.get("notes"),
                1 if profile.get("email_opt_in", True) else 0,
                profile.get("company_legal_name"),
                profile.get("tax_id"),
                profile.get("credit_limit"),
                profile.get("payment_terms"),
                profile.get("updated_by"),
                _now(),
            ),
        )

    async def update_customer(self, customer_ref: str, fields: dict[str, Any]) -> None:
        await self._update("customers", "id", customer_ref, fields)

    async def update_profile(self, customer_ref: str, fields: dict[str, Any]) -> None:
        await self._update("customer_profiles", "customer_ref", customer_ref, fields)

    async def insert_address(self, address: dict[str, Any]) -> None:
        now = _now()
        await self._db.execute(
            """
            INSERT INTO customer_addresses (
                id, customer_ref, address_type, is_default, recipient_name,
                address_line1, address_line2, city, state_province, postal_code,
                country, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                address["id"],
                address["customer_ref"],
                address.get("address_type", "both"),
                1 if address.get("is_default") else 0,
                address["recipient_name"],
                address["address_line1"],
                address.get("address_line2"),
                address["city"],
                address["state_province"],
                address["postal_code"],
                address["country"],
                now,
                now,
            ),
        )

    async def count_addresses(self, customer_ref: str) -> int:
        cursor = await self._db.execute(
            "SELECT COUNT(*) AS n FROM customer_addresses WHERE customer_ref = ?",
            (customer_ref,),
        )
        row = await cursor.fetchone()
        return row["n"] if row is not None else 0

    async def _update(self, table: str, key_column: str, key: str, fields: dict[str, Any]) -> None:
        if not fields:
            return
        values = dict(fields)
        if "tags" in values and values["tags"] is not None:
            values["tags"] = json.dumps(values["tags"])
        values["updated_at"] = _now()

        assignments = ", ".join(f"{column} = ?" for column in values)
        await self._db.execute(
            f"UPDATE {table} SET {assignments} WHERE {key_column} = ?",
            [*values.values(), key],
        )
