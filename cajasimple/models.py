"""Records stored by the cash register: suppliers, debts, payments and sales."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Debt:
    """Money owed to a supplier."""

    id: int
    supplier_id: int
    balance: int
    paid: bool
    date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of the debt."""
        return {
            "ID": self.id,
            "SupplierID": self.supplier_id,
            "Balance": self.balance,
            "Paid": self.paid,
            "Date": _timestamp(self.date),
        }


@dataclass(frozen=True)
class Payment:
    """Money paid to a supplier."""

    id: int
    balance: int
    supplier_id: int
    date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of the payment."""
        return {
            "ID": self.id,
            "Balance": self.balance,
            "SupplierID": self.supplier_id,
            "Date": _timestamp(self.date),
        }


@dataclass(frozen=True)
class Sale:
    """A recorded sale."""

    id: int
    balance: int
    date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of the sale."""
        return {
            "ID": self.id,
            "Balance": self.balance,
            "Date": _timestamp(self.date),
        }


@dataclass(frozen=True)
class Supplier:
    """A supplier the business buys from."""

    id: int
    name: str
    creation_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation of the supplier."""
        return {
            "ID": self.id,
            "Name": self.name,
            "CreationDate": _timestamp(self.creation_date),
        }