# cajasimple

A small cash-book service for a shop, stored in SQLite and served as JSON over
HTTP. It keeps four kinds of record:

- **suppliers**: who you buy from (`id`, `name`, `creation_date`);
- **debts**: amounts owed to a supplier, with a paid flag;
- **payments**: money handed over to a supplier;
- **sales**: money taken in.

Every record gets a numeric id and a UTC timestamp when it is created. Amounts
are whole numbers (for example, cents).

## Running the server

```
DB_URL=cash.db SERVER_ADDRESS=:8080 cajasimple
```

The `cajasimple` command opens the database, creates the tables if they are
missing and serves the API with Flask's built-in server.

| Option         | Default                | Meaning                              |
|----------------|------------------------|--------------------------------------|
| `--db-url`     | `$DB_URL`              | the database to open                 |
| `--address`    | `$SERVER_ADDRESS`      | `host:port` to listen on             |

The database may be a plain file path, `sqlite:///path/to/file.db`, or
`sqlite://` / `sqlite:///:memory:` for an in-memory database. An empty URL or
any other scheme is refused and the command exits with status 1.

An empty address falls back to `:$PORT` when `PORT` is set, and to `:8080`
otherwise. An address with no host listens on every interface; the port may be
a number or a service name. An address without a colon is refused.

## HTTP API

All routes live under `/api/v1`. Bodies sent as `application/json` are read as
JSON (field names are matched without regard to case); other bodies are read
from form and query fields. A failed request returns an object with a single
`Error` key holding the message. Records are returned with the keys shown
below, and timestamps in ISO 8601.

| Record   | Keys                                            |
|----------|-------------------------------------------------|
| supplier | `ID`, `Name`, `CreationDate`                    |
| debt     | `ID`, `SupplierID`, `Balance`, `Paid`, `Date`   |
| payment  | `ID`, `Balance`, `SupplierID`, `Date`           |
| sale     | `ID`, `Balance`, `Date`                         |

### Suppliers

| Method | Path              | Input                          | Success |
|--------|-------------------|--------------------------------|---------|
| POST   | `/supplier`       | `{"name": ...}`                | 200     |
| GET    | `/supplier/<id>`  |                                | 200     |
| DELETE | `/supplier/<id>`  |                                | 204     |
| GET    | `/suppliers`      | `?page_id=...&page_size=...`   | 200     |
| PUT    | `/supplier`       | `{"id": ..., "name": ...}`     | 202     |

### Debts

| Method | Path           | Input                                               | Success |
|--------|----------------|-----------------------------------------------------|---------|
| POST   | `/debt`        | `{"supplier_id": ..., "balance": ..., "paid": ...}` | 200     |
| GET    | `/debt/<id>`   |                                                     | 200     |
| DELETE | `/debt/<id>`   |                                                     | 204     |
| GET    | `/debts`       | `?page_id=...&page_size=...`                        | 200     |
| PUT    | `/debt`        | `{"id": ..., "balance": ...}`                       | 202     |

### Payments

| Method | Path             | Input                                   | Success |
|--------|------------------|-----------------------------------------|---------|
| POST   | `/payment`       | `{"balance": ..., "supplier_id": ...}`  | 200     |
| GET    | `/payment/<id>`  |                                         | see below |
| DELETE | `/payment/<id>`  |                                         | see below |
| GET    | `/payments`      | `?page_id=...&page_size=...`            | 200     |
| PUT    | `/payment`       | `{"id": ..., "balance": ...}`           | 200     |

### Sales

| Method | Path          | Input                          | Success |
|--------|---------------|--------------------------------|---------|
| POST   | `/sale`       | `{"balance": ...}`             | 200     |
| GET    | `/sale/<id>`  |                                | 200     |
| DELETE | `/sale/<id>`  |                                | 204     |
| GET    | `/sales`      | `?page_id=...&page_size=...`   | 200     |
| PUT    | `/sale`       | `{"id": ..., "balance": ...}`  | 202     |

### Behaviour worth knowing

- Required fields may not be zero or empty. Ids in the path must be 1 or more.
  A supplier name is required; `paid` on a new debt is required and so must be
  `true`.
- Validation failures answer 400, except on `PUT /supplier` and `PUT /sale`,
  which answer 500.
- Listings take `page_id` (1 or more) and `page_size` (5 to 10); `/payments`
  does not check either. Records come back ordered by id, starting after
  `(page_id - 1) * page_size` records and returning at most `page_id`
  records. An empty page is returned as `null`.
- A missing supplier or sale answers 404 on GET; looking up a missing debt
  answers 500.
- `DELETE /debt/<id>` removes the **supplier** with that id, not a debt.
- `GET /payment/<id>` and `DELETE /payment/<id>` do not read the id from the
  path and always answer 400.
- Updating a record that does not exist answers 500.

## Using it from Python

`cajasimple.queries` works without the server:

```python
from cajasimple.queries import Queries, connect, create_schema

conn = connect("sqlite://")
create_schema(conn)
db = Queries(conn)

supplier = db.create_supplier("acme")
db.create_debt(balance=5000, supplier_id=supplier.id, paid=False)
with db.transaction() as tx:
    tx.create_payment(balance=2000, supplier_id=supplier.id)
print([p.to_dict() for p in db.list_payments(limit=10, offset=0)])
```

`Queries` offers `create_*`, `get_*`, `list_*` (`list_suppliers`, `list_debts`,
`list_payments`, `list_sales`), `update_*` and `delete_*` for each record
type, returning the frozen dataclasses `Supplier`, `Debt`, `Payment` and
`Sale` from `cajasimple.models`; each has `to_dict()`. Getting or updating a
record that does not exist raises `NoRowsError`; negative limits or offsets
raise `ValueError`. `delete_debt` removes the supplier with the given id.
`transaction()` commits on success and rolls back on error.

`cajasimple.api.Server(queries)` builds the Flask application (`server.app`)
for the API above, and `server.start("host:port")` serves it.
`cajasimple.api.error_response(err)` returns the `{"Error": ...}` body.

`cajasimple.randomdata` produces sample values: `random_number(low, high)`,
`random_string(n)`, `random_money()` (800 to 10000), `random_name()` (six
letters) and `random_supplier_id()` (1 to 20).

## What it does not do

- Storage is SQLite only; there is no support for database servers.
- There is no authentication, and the server is Flask's development server.