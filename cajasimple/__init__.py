"""Cash-book service for suppliers, debts, payments and sales, kept in SQLite and served over HTTP."""

__version__ = "0.1.0"