from http import HTTPStatus
from unittest import mock

import pytest

from cajasimple.api import Server, error_response
from cajasimple.queries import NoRowsError, Queries, connect, create_schema

API = "/api/v1"


@pytest.fixture
def queries():
    conn = connect("sqlite://")
    create_schema(conn)
    yield Queries(conn)
    conn.close()


@pytest.fixture
def server(queries):
    return Server(queries)


@pytest.fixture
def client(server):
    return server.app.test_client()


def _supplier(client, name="acme"):
    response = client.post(f"{API}/supplier", json={"name": name})
    assert response.status_code == HTTPStatus.OK
    return response.get_json()


def _not_found_body():
    return error_response(NoRowsError())


def test_error_response_uses_error_key():
    assert error_response(ValueError("boom")) == {"Error": "boom"}


def test_create_supplier_returns_record(client):
    body = _supplier(client, "bodega")
    assert body["Name"] == "bodega"
    assert body["ID"] >= 1
    assert body["CreationDate"]


def test_create_supplier_requires_name(client):
    response = client.post(f"{API}/supplier", json={})
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "required" in response.get_json()["Error"]


def test_get_supplier_round_trip(client):
    created = _supplier(client, "kiosko")
    response = client.get(f"{API}/supplier/{created['ID']}")
    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == created


def test_get_missing_supplier_is_not_found(client):
    response = client.get(f"{API}/supplier/42")
    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.get_json() == _not_found_body()


@pytest.mark.parametrize("bad_id", ["0", "-1", "abc"])
def test_get_supplier_rejects_bad_id(client, bad_id):
    response = client.get(f"{API}/supplier/{bad_id}")
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "Error" in response.get_json()


def test_delete_supplier(client):
    created = _supplier(client)
    response = client.delete(f"{API}/supplier/{created['ID']}")
    assert response.status_code == HTTPStatus.NO_CONTENT
    assert response.data == b""
    assert client.get(f"{API}/supplier/{created['ID']}").status_code == HTTPStatus.NOT_FOUND


def test_list_suppliers_uses_page_id_as_limit(client):
    created = [_supplier(client, f"s{n}") for n in range(10)]
    response = client.get(f"{API}/suppliers?page_id=2&page_size=5")
    assert response.status_code == HTTPStatus.OK
    ids = [item["ID"] for item in response.get_json()]
    assert ids == [created[5]["ID"], created[6]["ID"]]


@pytest.mark.parametrize(
    "query", ["", "?page_id=1", "?page_id=1&page_size=11", "?page_id=1&page_size=4",
              "?page_id=0&page_size=5", "?page_id=2147483648&page_size=5"]
)
def test_list_suppliers_validates_paging(client, query):
    response = client.get(f"{API}/suppliers{query}")
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "Error" in response.get_json()


def test_list_of_nothing_is_null(client):
    response = client.get(f"{API}/suppliers?page_id=1&page_size=5")
    assert response.status_code == HTTPStatus.OK
    assert response.data.strip() == b"null"


def test_update_supplier(client):
    created = _supplier(client, "before")
    response = client.put(f"{API}/supplier", json={"id": created["ID"], "name": "after"})
    assert response.status_code == HTTPStatus.ACCEPTED
    body = response.get_json()
    assert body["ID"] == created["ID"]
    assert body["Name"] == "after"


def test_update_supplier_without_name_is_server_error(client):
    created = _supplier(client)
    response = client.put(f"{API}/supplier", json={"id": created["ID"]})
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert "required" in response.get_json()["Error"]


def test_update_unknown_supplier_is_server_error(client):
    response = client.put(f"{API}/supplier", json={"id": 99, "name": "ghost"})
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.get_json() == _not_found_body()


def test_create_debt(client):
    supplier = _supplier(client)
    response = client.post(
        f"{API}/debt", json={"supplier_id": supplier["ID"], "balance": 1500, "paid": True}
    )
    assert response.status_code == HTTPStatus.OK
    body = response.get_json()
    assert body["SupplierID"] == supplier["ID"]
    assert body["Balance"] == 1500
    assert body["Paid"] is True


def test_create_debt_rejects_unpaid(client):
    supplier = _supplier(client)
    response = client.post(
        f"{API}/debt", json={"supplier_id": supplier["ID"], "balance": 1500, "paid": False}
    )
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "'Paid'" in response.get_json()["Error"]


def test_create_debt_for_unknown_supplier_is_server_error(client):
    response = client.post(f"{API}/debt", json={"supplier_id": 77, "balance": 10, "paid": True})
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert "Error" in response.get_json()


def test_get_missing_debt_is_server_error(client):
    response = client.get(f"{API}/debt/5")
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.get_json() == _not_found_body()


def test_update_debt_allows_zero_balance(client):
    supplier = _supplier(client)
    debt = client.post(
        f"{API}/debt", json={"supplier_id": supplier["ID"], "balance": 300, "paid": True}
    ).get_json()
    response = client.put(f"{API}/debt", json={"id": debt["ID"], "balance": 0})
    assert response.status_code == HTTPStatus.ACCEPTED
    assert response.get_json()["Balance"] == 0
    assert client.get(f"{API}/debt/{debt['ID']}").get_json()["Balance"] == 0


def test_delete_debt_removes_supplier_with_that_id(client):
    first = _supplier(client, "first")
    second = _supplier(client, "second")
    debt = client.post(
        f"{API}/debt", json={"supplier_id": first["ID"], "balance": 300, "paid": True}
    ).get_json()
    response = client.delete(f"{API}/debt/{second['ID']}")
    assert response.status_code == HTTPStatus.NO_CONTENT
    assert client.get(f"{API}/supplier/{second['ID']}").status_code == HTTPStatus.NOT_FOUND
    assert client.get(f"{API}/debt/{debt['ID']}").get_json() == debt


def test_list_debts(client):
    supplier = _supplier(client)
    debts = [
        client.post(
            f"{API}/debt", json={"supplier_id": supplier["ID"], "balance": b, "paid": True}
        ).get_json()
        for b in (100, 200, 300)
    ]
    response = client.get(f"{API}/debts?page_id=1&page_size=5")
    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == debts[:1]


def test_create_payment(client):
    supplier = _supplier(client)
    response = client.post(f"{API}/payment", json={"balance": 900, "supplier_id": supplier["ID"]})
    assert response.status_code == HTTPStatus.OK
    body = response.get_json()
    assert body["Balance"] == 900
    assert body["SupplierID"] == supplier["ID"]


def test_create_payment_rejects_zero_balance(client):
    supplier = _supplier(client)
    response = client.post(f"{API}/payment", json={"balance": 0, "supplier_id": supplier["ID"]})
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "'Balance'" in response.get_json()["Error"]


def test_payment_id_is_never_bound_from_path(client, queries):
    supplier = queries.create_supplier("acme")
    payment = queries.create_payment(900, supplier.id)
    assert client.get(f"{API}/payment/{payment.id}").status_code == HTTPStatus.BAD_REQUEST
    assert client.delete(f"{API}/payment/{payment.id}").status_code == HTTPStatus.BAD_REQUEST
    assert queries.get_payment(payment.id) == payment


def test_list_payments_without_paging(client, queries):
    supplier = queries.create_supplier("acme")
    queries.create_payment(900, supplier.id)
    response = client.get(f"{API}/payments")
    assert response.status_code == HTTPStatus.OK
    assert response.data.strip() == b"null"


def test_list_payments_negative_offset_is_server_error(client):
    response = client.get(f"{API}/payments?page_id=0&page_size=5")
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert "OFFSET" in response.get_json()["Error"]


def test_update_payment(client, queries):
    supplier = queries.create_supplier("acme")
    payment = queries.create_payment(900, supplier.id)
    response = client.put(f"{API}/payment", json={"id": payment.id, "balance": 1200})
    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["Balance"] == 1200
    assert queries.get_payment(payment.id).balance == 1200


def test_update_payment_rejects_zero_balance(client, queries):
    supplier = queries.create_supplier("acme")
    payment = queries.create_payment(900, supplier.id)
    response = client.put(f"{API}/payment", json={"id": payment.id, "balance": 0})
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert queries.get_payment(payment.id).balance == 900


def test_create_sale_from_json(client):
    response = client.post(f"{API}/sale", json={"balance": 450})
    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["Balance"] == 450


def test_create_sale_json_keys_ignore_case(client):
    response = client.post(f"{API}/sale", json={"BALANCE": 450})
    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["Balance"] == 450


def test_create_sale_from_form_uses_field_name(client):
    response = client.post(f"{API}/sale", data={"Balance": "500"})
    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["Balance"] == 500
    rejected = client.post(f"{API}/sale", data={"balance": "500"})
    assert rejected.status_code == HTTPStatus.BAD_REQUEST


@pytest.mark.parametrize("balance", [0, "450", 4.5, True, 2**63, [1]])
def test_create_sale_rejects_bad_balance(client, balance):
    response = client.post(f"{API}/sale", json={"balance": balance})
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "Error" in response.get_json()


@pytest.mark.parametrize("body", ["", "{", "[1, 2]"])
def test_create_sale_rejects_bad_body(client, body):
    response = client.post(f"{API}/sale", data=body, content_type="application/json")
    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "Error" in response.get_json()


def test_get_and_delete_sale(client):
    sale = client.post(f"{API}/sale", json={"balance": 450}).get_json()
    assert client.get(f"{API}/sale/{sale['ID']}").get_json() == sale
    assert client.delete(f"{API}/sale/{sale['ID']}").status_code == HTTPStatus.NO_CONTENT
    missing = client.get(f"{API}/sale/{sale['ID']}")
    assert missing.status_code == HTTPStatus.NOT_FOUND
    assert missing.get_json() == _not_found_body()


def test_list_sales_pages(client):
    sales = [client.post(f"{API}/sale", json={"balance": n + 1}).get_json() for n in range(20)]
    response = client.get(f"{API}/sales?page_id=3&page_size=5")
    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == sales[10:13]


def test_update_sale(client):
    sale = client.post(f"{API}/sale", json={"balance": 450}).get_json()
    response = client.put(f"{API}/sale", json={"id": sale["ID"], "balance": 460})
    assert response.status_code == HTTPStatus.ACCEPTED
    assert response.get_json()["Balance"] == 460


def test_update_sale_bad_body_is_server_error(client):
    response = client.put(f"{API}/sale", json={"id": 1})
    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert "required" in response.get_json()["Error"]


def test_start_binds_all_interfaces_for_bare_port(server):
    with mock.patch.object(server.app, "run") as run:
        server.start(":8080")
    run.assert_called_once_with(host="0.0.0.0", port=8080)


def test_start_uses_given_host(server):
    with mock.patch.object(server.app, "run") as run:
        server.start("127.0.0.1:5000")
    run.assert_called_once_with(host="127.0.0.1", port=5000)


def test_start_empty_address_uses_http_port(server):
    with mock.patch.object(server.app, "run") as run:
        server.start("")
    run.assert_called_once_with(host="0.0.0.0", port=80)


def test_start_rejects_address_without_port(server):
    with mock.patch.object(server.app, "run") as run:
        with pytest.raises(ValueError):
            server.start("localhost")
    assert run.call_count == 0