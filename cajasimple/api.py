"""HTTP interface for suppliers, debts, payments and sales."""

from __future__ import annotations

import json
import re
import socket
import sqlite3
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, TypeVar

from flask import Flask, Response, jsonify, request

from cajasimple.queries import NoRowsError, Queries

T = TypeVar("T")

API_PREFIX = "/api/v1"

_DB_ERRORS = (sqlite3.Error, NoRowsError, ValueError, OverflowError)
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")
_BOOL_TEXT = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}


class BindingError(ValueError):
    """Raised when a request cannot be bound to the fields a handler expects."""


@dataclass(frozen=True)
class _Field:
    """One request field: where it is read from and how it is validated."""

    name: str
    kind: type
    json: str | None = None
    form: str | None = None
    uri: str | None = None
    required: bool = False
    minimum: int | None = None
    maximum: int | None = None
    bits: int = 64

    @property
    def zero(self) -> Any:
        return self.kind()

    def key(self, tag: str) -> str:
        return getattr(self, tag) or self.name

    def _check_range(self, value: int) -> int:
        bound = 1 << (self.bits - 1)
        if not -bound <= value < bound:
            raise BindingError(f"value {value} out of range for field {self.name!r}")
        return value

    def from_text(self, text: str) -> Any:
        if self.kind is str:
            return text
        if text == "":
            return self.zero
        if self.kind is bool:
            try:
                return _BOOL_TEXT[text]
            except KeyError:
                raise BindingError(
                    f"invalid boolean {text!r} for field {self.name!r}"
                ) from None
        if not _INTEGER_TEXT.fullmatch(text):
            raise BindingError(f"invalid integer {text!r} for field {self.name!r}")
        return self._check_range(int(text))

    def from_json(self, value: Any) -> Any:
        if self.kind is int:
            valid = isinstance(value, int) and not isinstance(value, bool)
        else:
            valid = isinstance(value, self.kind)
        if not valid:
            raise BindingError(
                f"cannot decode {type(value).__name__} into field "
                f"{self.name!r} of type {self.kind.__name__}"
            )
        return self._check_range(value) if self.kind is int else value

    def violation(self, value: Any) -> str | None:
        if self.required and value == self.zero:
            return "required"
        size = len(value) if isinstance(value, str) else value
        if self.minimum is not None and size < self.minimum:
            return "min"
        if self.maximum is not None and size > self.maximum:
            return "max"
        return None

    def message(self, tag: str) -> str:
        return (
            f"Key: '{self.name}' Error:Field validation for "
            f"'{self.name}' failed on the '{tag}' tag"
        )


def _validate(fields: Sequence[_Field], values: dict[str, Any]) -> dict[str, Any]:
    problems = [
        item.message(tag)
        for item in fields
        if (tag := item.violation(values[item.name])) is not None
    ]
    if problems:
        raise BindingError("\n".join(problems))
    return values


def _bind_text(
    fields: Sequence[_Field], tag: str, source: Mapping[str, str]
) -> dict[str, Any]:
    values = {
        item.name: item.from_text(source[item.key(tag)])
        if item.key(tag) in source
        else item.zero
        for item in fields
    }
    return _validate(fields, values)


def _bind_json(fields: Sequence[_Field], document: Any) -> dict[str, Any]:
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise BindingError("request body must be a JSON object")
    values = {}
    for item in fields:
        wanted = item.key("json").casefold()
        value = item.zero
        for name, raw in document.items():
            if name.casefold() == wanted and raw is not None:
                value = item.from_json(raw)
        values[item.name] = value
    return _validate(fields, values)


def _read_json() -> Any:
    text = request.get_data(as_text=True).lstrip()
    if not text:
        raise BindingError("EOF")
    try:
        document, _ = json.JSONDecoder().raw_decode(text)
    except json.JSONDecodeError as err:
        raise BindingError(str(err)) from None
    return document


def _bind_body(fields: Sequence[_Field]) -> dict[str, Any]:
    if request.mimetype == "application/json":
        return _bind_json(fields, _read_json())
    values = {**request.args.to_dict(), **request.form.to_dict()}
    return _bind_text(fields, "form", values)


def _bind_uri(fields: Sequence[_Field]) -> dict[str, Any]:
    return _bind_text(fields, "uri", request.view_args or {})


def _bind_query(fields: Sequence[_Field]) -> dict[str, Any]:
    return _bind_text(fields, "form", request.args.to_dict())


def _wrap32(value: int) -> int:
    return (value + (1 << 31)) % (1 << 32) - (1 << 31)


def _page(values: Mapping[str, int]) -> tuple[int, int]:
    page_id = values["PageID"]
    return page_id, _wrap32((page_id - 1) * values["PageSize"])


def error_response(err: BaseException) -> dict[str, str]:
    """Return the JSON body used to report an error."""
    return {"Error": str(err)}


def _reply(status: HTTPStatus, payload: Any = None) -> Response:
    if status == HTTPStatus.NO_CONTENT:
        return Response(status=status)
    response = jsonify(payload)
    response.status_code = status
    return response


def _fail(status: HTTPStatus, err: BaseException) -> Response:
    return _reply(status, error_response(err))


def _split_address(address: str) -> tuple[str, int]:
    if address and ":" not in address:
        raise ValueError(f"address {address}: missing port in address")
    host, _, port = address.rpartition(":")
    host = host.removeprefix("[").removesuffix("]")
    if not port:
        number = 80
    elif port.isdigit():
        number = int(port)
    else:
        try:
            number = socket.getservbyname(port, "tcp")
        except OSError as err:
            raise ValueError(f"address {address}: unknown port") from err
    if not 0 <= number <= 65535:
        raise ValueError(f"address {address}: invalid port")
    return host or "0.0.0.0", number


_URI_ID = (_Field("ID", int, uri="id", required=True, minimum=1),)
# These requests name the id under "form", so binding from the path never finds it.
_FORM_ID = (_Field("ID", int, form="id", required=True, minimum=1),)
_PAGE = (
    _Field("PageID", int, form="page_id", required=True, minimum=1, bits=32),
    _Field("PageSize", int, form="page_size", required=True, minimum=5, maximum=10, bits=32),
)
_UNCHECKED_PAGE = (
    _Field("PageID", int, form="page_id", bits=32),
    _Field("PageSize", int, form="page_size", bits=32),
)
_CREATE_DEBT = (
    _Field("Supplierid", int, json="supplier_id", required=True, minimum=1),
    _Field("Balance", int, json="balance", required=True, minimum=0),
    _Field("Paid", bool, json="paid", required=True),
)
_UPDATE_DEBT = (
    _Field("Id", int, json="id", required=True, minimum=1),
    _Field("Balance", int, json="balance"),
)
_CREATE_PAYMENT = (
    _Field("Balance", int, json="balance", required=True, minimum=1),
    _Field("SupplierID", int, json="supplier_id", required=True, minimum=1),
)
_UPDATE_PAYMENT = (
    _Field("ID", int, json="id", required=True, minimum=1),
    _Field("Balance", int, json="balance", required=True, minimum=0),
)
_CREATE_SALE = (_Field("Balance", int, json="balance", required=True, minimum=0),)
_UPDATE_SALE = (
    _Field("ID", int, json="id"),
    _Field("Balance", int, json="balance", required=True, minimum=0),
)
_CREATE_SUPPLIER = (_Field("Name", str, json="name", required=True),)
_UPDATE_SUPPLIER = (
    _Field("ID", int, json="id"),
    _Field("Name", str, json="name", required=True),
)


class Server:
    """Web application serving the cash register records under /api/v1."""

    def __init__(self, queries: Queries) -> None:
        self.queries = queries
        self._lock = threading.Lock()
        self.app = Flask(__name__)
        self.app.json.sort_keys = False
        routes = [
            ("POST", "/supplier", self._create_supplier),
            ("DELETE", "/supplier/<id>", self._delete_supplier),
            ("GET", "/supplier/<id>", self._get_supplier),
            ("GET", "/suppliers", self._list_suppliers),
            ("PUT", "/supplier", self._update_supplier),
            ("POST", "/debt", self._create_debt),
            ("GET", "/debt/<id>", self._get_debt),
            ("GET", "/debts", self._list_debts),
            ("DELETE", "/debt/<id>", self._delete_debt),
            ("PUT", "/debt", self._update_debt),
            ("POST", "/payment", self._create_payment),
            ("GET", "/payment/<id>", self._get_payment),
            ("DELETE", "/payment/<id>", self._delete_payment),
            ("GET", "/payments", self._list_payments),
            ("PUT", "/payment", self._update_payment),
            ("POST", "/sale", self._create_sale),
            ("DELETE", "/sale/<id>", self._delete_sale),
            ("GET", "/sale/<id>", self._get_sale),
            ("GET", "/sales", self._list_sales),
            ("PUT", "/sale", self._update_sale),
        ]
        for method, path, handler in routes:
            self.app.add_url_rule(
                API_PREFIX + path,
                endpoint=handler.__name__.lstrip("_"),
                view_func=handler,
                methods=[method],
            )

    def start(self, address: str) -> None:
        """Serve the application on a "host:port" address."""
        host, port = _split_address(address)
        self.app.run(host=host, port=port)

    def _run(self, operation: Callable[..., T], *args: Any) -> T:
        with self._lock:
            return operation(*args)

    def _listing(
        self,
        fields: Sequence[_Field],
        fetch: Callable[[int, int], list],
        error_status: HTTPStatus,
    ) -> Response:
        try:
            req = _bind_query(fields)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        limit, offset = _page(req)
        try:
            items = self._run(fetch, limit, offset)
        except _DB_ERRORS as err:
            return _fail(error_status, err)
        return _reply(HTTPStatus.OK, [item.to_dict() for item in items] or None)

    # suppliers

    def _create_supplier(self) -> Response:
        try:
            req = _bind_body(_CREATE_SUPPLIER)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            supplier = self._run(self.queries.create_supplier, req["Name"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, supplier.to_dict())

    def _delete_supplier(self, **_params: str) -> Response:
        try:
            req = _bind_uri(_URI_ID)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            self._run(self.queries.delete_supplier, req["ID"])
        except NoRowsError as err:
            return _fail(HTTPStatus.NOT_FOUND, err)
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.NO_CONTENT)

    def _get_supplier(self, **_params: str) -> Response:
        try:
            req = _bind_uri(_URI_ID)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            supplier = self._run(self.queries.get_supplier, req["ID"])
        except NoRowsError as err:
            return _fail(HTTPStatus.NOT_FOUND, err)
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, supplier.to_dict())

    def _list_suppliers(self) -> Response:
        return self._listing(
            _PAGE, self.queries.list_suppliers, HTTPStatus.INTERNAL_SERVER_ERROR
        )

    def _update_supplier(self) -> Response:
        try:
            req = _bind_body(_UPDATE_SUPPLIER)
        except BindingError as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        try:
            supplier = self._run(self.queries.update_supplier, req["ID"], req["Name"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.ACCEPTED, supplier.to_dict())

    # debts

    def _create_debt(self) -> Response:
        try:
            req = _bind_body(_CREATE_DEBT)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            debt = self._run(
                self.queries.create_debt, req["Balance"], req["Supplierid"], req["Paid"]
            )
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, debt.to_dict())

    def _get_debt(self, **_params: str) -> Response:
        try:
            req = _bind_uri(_URI_ID)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            debt = self._run(self.queries.get_debt, req["ID"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, debt.to_dict())

    def _delete_debt(self, **_params: str) -> Response:
        try:
            req = _bind_uri(_URI_ID)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            self._run(self.queries.delete_debt, req["ID"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.NO_CONTENT)

    def _update_debt(self) -> Response:
        try:
            req = _bind_body(_UPDATE_DEBT)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            debt = self._run(self.queries.update_debt, req["Id"], req["Balance"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.ACCEPTED, debt.to_dict())

    def _list_debts(self) -> Response:
        return self._listing(_PAGE, self.queries.list_debts, HTTPStatus.BAD_REQUEST)

    # payments

    def _create_payment(self) -> Response:
        try:
            req = _bind_body(_CREATE_PAYMENT)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            payment = self._run(
                self.queries.create_payment, req["Balance"], req["SupplierID"]
            )
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, payment.to_dict())

    def _get_payment(self, **_params: str) -> Response:
        try:
            req = _bind_uri(_FORM_ID)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            payment = self._run(self.queries.get_payment, req["ID"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, payment.to_dict())

    def _list_payments(self) -> Response:
        return self._listing(
            _UNCHECKED_PAGE, self.queries.list_payments, HTTPStatus.INTERNAL_SERVER_ERROR
        )

    def _delete_payment(self, **_params: str) -> Response:
        try:
            req = _bind_uri(_FORM_ID)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            self._run(self.queries.delete_payment, req["ID"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK)

    def _update_payment(self) -> Response:
        try:
            req = _bind_body(_UPDATE_PAYMENT)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            payment = self._run(self.queries.update_payment, req["ID"], req["Balance"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, payment.to_dict())

    # sales

    def _create_sale(self) -> Response:
        try:
            req = _bind_body(_CREATE_SALE)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            sale = self._run(self.queries.create_sale, req["Balance"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, sale.to_dict())

    def _delete_sale(self, **_params: str) -> Response:
        try:
            req = _bind_uri(_URI_ID)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            self._run(self.queries.delete_sale, req["ID"])
        except NoRowsError as err:
            return _fail(HTTPStatus.NOT_FOUND, err)
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.NO_CONTENT)

    def _get_sale(self, **_params: str) -> Response:
        try:
            req = _bind_uri(_URI_ID)
        except BindingError as err:
            return _fail(HTTPStatus.BAD_REQUEST, err)
        try:
            sale = self._run(self.queries.get_sale, req["ID"])
        except NoRowsError as err:
            return _fail(HTTPStatus.NOT_FOUND, err)
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.OK, sale.to_dict())

    def _list_sales(self) -> Response:
        return self._listing(
            _PAGE, self.queries.list_sales, HTTPStatus.INTERNAL_SERVER_ERROR
        )

    def _update_sale(self) -> Response:
        try:
            req = _bind_body(_UPDATE_SALE)
        except BindingError as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        try:
            sale = self._run(self.queries.update_sale, req["ID"], req["Balance"])
        except _DB_ERRORS as err:
            return _fail(HTTPStatus.INTERNAL_SERVER_ERROR, err)
        return _reply(HTTPStatus.ACCEPTED, sale.to_dict())