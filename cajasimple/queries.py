"""Database access for suppliers, debts, payments and sales."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TypeVar

from cajasimple.models import Debt, Payment, Sale, Supplier

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS supplier (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    creation_date TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS debts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    supplier_id INTEGER NOT NULL REFERENCES supplier (id),
    balance INTEGER NOT NULL,
    paid INTEGER NOT NULL,
    date TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS payments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    balance INTEGER NOT NULL,
    supplier_id INTEGER NOT NULL REFERENCES supplier (id),
    date TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS sales (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    balance INTEGER NOT NULL,
    date TEXT NOT NULL
);
"""


class NoRowsError(LookupError):
    """Raised when a query that must return a row finds none."""

    def __init__(self, message: str = "no rows in result set") -> None:
        super().__init__(message)


def connect(url: str) -> sqlite3.Connection:
    """Open a database from a ``sqlite://`` URL or a plain file path."""
    if not url:
        raise ValueError("database url is empty")
    if url.startswith("sqlite://"):
        rest = url[len("sqlite://"):]
        if rest in ("", "/", "/:memory:"):
            path = ":memory:"
        else:
            path = rest[1:] if rest.startswith("/") else rest
    elif "://" in url:
        raise ValueError(f"unsupported database url: {url}")
    else:
        path = url
    conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the tables if they do not exist yet."""
    conn.executescript(_SCHEMA)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_date(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _debt(row: sqlite3.Row) -> Debt:
    return Debt(
        id=row["id"],
        supplier_id=row["supplier_id"],
        balance=row["balance"],
        paid=bool(row["paid"]),
        date=_parse_date(row["date"]),
    )


def _payment(row: sqlite3.Row) -> Payment:
    return Payment(
        id=row["id"],
        balance=row["balance"],
        supplier_id=row["supplier_id"],
        date=_parse_date(row["date"]),
    )


def _sale(row: sqlite3.Row) -> Sale:
    return Sale(id=row["id"], balance=row["balance"], date=_parse_date(row["date"]))


def _supplier(row: sqlite3.Row) -> Supplier:
    return Supplier(
        id=row["id"],
        name=row["name"],
        creation_date=_parse_date(row["creation_date"]),
    )


def _check_page(limit: int, offset: int) -> None:
    if limit < 0:
        raise ValueError("LIMIT must not be negative")
    if offset < 0:
        raise ValueError("OFFSET must not be negative")


class Queries:
    """Typed queries over one database connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @contextmanager
    def transaction(self) -> Iterator[Queries]:
        """Run the enclosed queries in one transaction, rolled back on error."""
        self._conn.execute("BEGIN")
        try:
            yield Queries(self._conn)
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")

    def _one(self, sql: str, params: tuple, factory: Callable[[sqlite3.Row], T]) -> T:
        row = self._conn.execute(sql, params).fetchone()
        if row is None:
            raise NoRowsError()
        return factory(row)

    def _many(
        self, sql: str, limit: int, offset: int, factory: Callable[[sqlite3.Row], T]
    ) -> list[T]:
        _check_page(limit, offset)
        return [factory(row) for row in self._conn.execute(sql, (limit, offset))]

    def _insert(self, sql: str, params: tuple) -> int:
        return self._conn.execute(sql, params).lastrowid

    def _update(self, sql: str, params: tuple) -> None:
        if self._conn.execute(sql, params).rowcount == 0:
            raise NoRowsError()

    # debts

    def create_debt(self, balance: int, supplier_id: int, paid: bool) -> Debt:
        new_id = self._insert(
            "INSERT INTO debts (balance, supplier_id, paid, date) VALUES (?, ?, ?, ?)",
            (balance, supplier_id, int(paid), _now()),
        )
        return self.get_debt(new_id)

    def delete_debt(self, debt_id: int) -> None:
        self._conn.execute("DELETE FROM supplier WHERE id = ?", (debt_id,))

    def get_debt(self, debt_id: int) -> Debt:
        return self._one(
            "SELECT id, supplier_id, balance, paid, date FROM debts WHERE id = ? LIMIT 1",
            (debt_id,),
            _debt,
        )

    def list_debts(self, limit: int, offset: int) -> list[Debt]:
        return self._many(
            "SELECT id, supplier_id, balance, paid, date FROM debts "
            "ORDER BY id LIMIT ? OFFSET ?",
            limit,
            offset,
            _debt,
        )

    def update_debt(self, debt_id: int, balance: int) -> Debt:
        self._update("UPDATE debts SET balance = ? WHERE id = ?", (balance, debt_id))
        return self.get_debt(debt_id)

    # payments

    def create_payment(self, balance: int, supplier_id: int) -> Payment:
        new_id = self._insert(
            "INSERT INTO payments (balance, supplier_id, date) VALUES (?, ?, ?)",
            (balance, supplier_id, _now()),
        )
        return self.get_payment(new_id)

    def delete_payment(self, payment_id: int) -> None:
        self._conn.execute("DELETE FROM payments WHERE id = ?", (payment_id,))

    def get_payment(self, payment_id: int) -> Payment:
        return self._one(
            "SELECT id, balance, supplier_id, date FROM payments WHERE id = ?",
            (payment_id,),
            _payment,
        )

    def list_payments(self, limit: int, offset: int) -> list[Payment]:
        return self._many(
            "SELECT id, balance, supplier_id, date FROM payments "
            "ORDER BY id LIMIT ? OFFSET ?",
            limit,
            offset,
            _payment,
        )

    def update_payment(self, payment_id: int, balance: int) -> Payment:
        self._update(
            "UPDATE payments SET balance = ? WHERE id = ?", (balance, payment_id)
        )
        return self.get_payment(payment_id)

    # sales

    def create_sale(self, balance: int) -> Sale:
        new_id = self._insert(
            "INSERT INTO sales (balance, date) VALUES (?, ?)", (balance, _now())
        )
        return self.get_sale(new_id)

    def delete_sale(self, sale_id: int) -> None:
        self._conn.execute("DELETE FROM sales WHERE id = ?", (sale_id,))

    def get_sale(self, sale_id: int) -> Sale:
        return self._one(
            "SELECT id, balance, date FROM sales WHERE id = ? LIMIT 1",
            (sale_id,),
            _sale,
        )

    def list_sales(self, limit: int, offset: int) -> list[Sale]:
        return self._many(
            "SELECT id, balance, date FROM sales ORDER BY id LIMIT ? OFFSET ?",
            limit,
            offset,
            _sale,
        )

    def update_sale(self, sale_id: int, balance: int) -> Sale:
        self._update("UPDATE sales SET balance = ? WHERE id = ?", (balance, sale_id))
        return self.get_sale(sale_id)

    # suppliers

    def create_supplier(self, name: str) -> Supplier:
        new_id = self._insert(
            "INSERT INTO supplier (name, creation_date) VALUES (?, ?)", (name, _now())
        )
        return self.get_supplier(new_id)

    def delete_supplier(self, supplier_id: int) -> None:
        self._conn.execute("DELETE FROM supplier WHERE id = ?", (supplier_id,))

    def get_supplier(self, supplier_id: int) -> Supplier:
        return self._one(
            "SELECT id, name, creation_date FROM supplier WHERE id = ? LIMIT 1",
            (supplier_id,),
            _supplier,
        )

    def list_suppliers(self, limit: int, offset: int) -> list[Supplier]:
        return self._many(
            "SELECT id, name, creation_date FROM supplier ORDER BY id LIMIT ? OFFSET ?",
            limit,
            offset,
            _supplier,
        )

    def update_supplier(self, supplier_id: int, name: str) -> Supplier:
        self._update("UPDATE supplier SET name = ? WHERE id = ?", (name, supplier_id))
        return self.get_supplier(supplier_id)