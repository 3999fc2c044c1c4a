import math
import uuid

from botocore.exceptions import ClientError

from expense_api.db import dynamo

lunch = {"amount": 250.5, "date": "2025-11-03", "note": "Lunch", "currency": "$", "category": "Food"}


def create(client, headers, **overrides):
    body = dict(lunch, **overrides)
    response = client.post("/api/expenses", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_returns_record_with_id_and_owner(client, alice):
    response = client.post("/api/expenses", json=lunch, headers=alice)
    assert response.status_code == 201
    record = response.json()
    assert record["amount"] == 250.5
    assert record["date"] == "2025-11-03"
    assert record["note"] == "Lunch"
    assert record["currency"] == "$"
    assert record["category"] == "Food"
    assert record["userId"] == "user-alice"
    assert uuid.UUID(record["id"])
    assert record["createdAt"]
    assert record["updatedAt"]


def test_create_applies_defaults(client, alice):
    record = create(client, alice, note=None, currency=None, category=None)
    assert record["currency"] == "₹"
    assert record["category"] == "Other"


def test_create_accepts_numeric_strings_and_datetimes(client, alice):
    record = create(client, alice, amount="12.75", date="2025-11-03T18:30:00Z")
    assert record["amount"] == 12.75
    assert record["date"] == "2025-11-03"


def test_create_ignores_owner_in_body(client, alice):
    record = create(client, alice, userId="user-mallory", user_id="user-mallory")
    assert record["userId"] == "user-alice"


def test_create_rejects_non_positive_amounts(client, alice):
    for amount in (0, -5, "-1", "abc"):
        response = client.post("/api/expenses", json=dict(lunch, amount=amount), headers=alice)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation"
        assert body["details"] == [{"param": "amount", "msg": "Amount must be positive"}]


def test_create_rejects_amounts_the_store_cannot_hold(client, alice, expenses_table):
    for amount in (1e200, 1e-200):
        response = client.post("/api/expenses", json=dict(lunch, amount=amount), headers=alice)
        assert response.status_code == 400
        assert response.json()["details"] == [{"param": "amount", "msg": "Amount out of range"}]
    assert expenses_table.scan()["Items"] == []

    record = create(client, alice)
    response = client.put(f"/api/expenses/{record['id']}", json={"amount": 1e200}, headers=alice)
    assert response.status_code == 400
    assert response.json()["details"][0]["param"] == "amount"


def test_create_enumerates_every_failing_field(client, alice):
    body = {"amount": -1, "date": "2025-02-30", "note": "x" * 501, "currency": "C" * 11, "category": "C" * 51}
    response = client.post("/api/expenses", json=body, headers=alice)
    assert response.status_code == 400
    params = {d["param"] for d in response.json()["details"]}
    assert params == {"amount", "date", "note", "currency", "category"}


def test_create_requires_amount_and_date(client, alice):
    response = client.post("/api/expenses", json={"note": "nothing else"}, headers=alice)
    assert response.status_code == 400
    params = {d["param"] for d in response.json()["details"]}
    assert params == {"amount", "date"}


def test_requests_without_token_are_rejected_before_storage(client, expenses_table):
    response = client.post("/api/expenses", json=lunch)
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"
    assert response.headers["www-authenticate"] == "Bearer"
    assert expenses_table.scan()["Items"] == []

    assert client.get("/api/expenses").status_code == 401
    assert client.get("/api/expenses", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401
    assert client.delete(f"/api/expenses/{uuid.uuid4()}", headers={"Authorization": "Basic abc"}).status_code == 401


def test_list_is_scoped_to_owner(client, alice, bob):
    for day in ("2025-11-01", "2025-11-02", "2025-11-03"):
        create(client, alice, date=day)
    create(client, bob, note="bob's")
    create(client, bob, note="bob's")

    body = client.get("/api/expenses", headers=alice).json()
    assert body["meta"]["totalItems"] == 3
    assert {r["userId"] for r in body["data"]} == {"user-alice"}

    body = client.get("/api/expenses", headers=bob).json()
    assert body["meta"]["totalItems"] == 2
    assert all(r["note"] == "bob's" for r in body["data"])


def test_list_orders_by_date_descending(client, alice):
    for day in ("2025-10-05", "2025-12-01", "2025-11-15"):
        create(client, alice, date=day)
    dates = [r["date"] for r in client.get("/api/expenses", headers=alice).json()["data"]]
    assert dates == ["2025-12-01", "2025-11-15", "2025-10-05"]


def test_same_date_keeps_insertion_order(client, alice, expenses_table):
    for idx, expense_id in enumerate(["c" * 8, "a" * 8, "b" * 8]):
        dynamo.put_expense({
            "user_id": "user-alice",
            "expense_id": f"{expense_id}-0000-4000-8000-000000000000",
            "amount": 1.5,
            "date": "2025-11-01",
            "note": f"#{idx}",
            "currency": "₹",
            "category": "Food",
            "created_at": f"2025-11-01T10:00:0{idx}+00:00",
            "updated_at": f"2025-11-01T10:00:0{idx}+00:00",
        })
    notes = [r["note"] for r in client.get("/api/expenses", headers=alice).json()["data"]]
    assert notes == ["#0", "#1", "#2"]


def test_pagination_meta_and_pages(client, alice):
    for day in range(1, 6):
        create(client, alice, date=f"2025-11-0{day}")

    body = client.get("/api/expenses", params={"limit": 2}, headers=alice).json()
    assert body["meta"] == {"totalItems": 5, "totalPages": 3, "currentPage": 1, "limit": 2}
    assert [r["date"] for r in body["data"]] == ["2025-11-05", "2025-11-04"]

    body = client.get("/api/expenses", params={"limit": 2, "page": 3}, headers=alice).json()
    assert [r["date"] for r in body["data"]] == ["2025-11-01"]
    assert body["meta"]["totalPages"] == math.ceil(5 / 2)


def test_page_beyond_last_is_empty(client, alice):
    create(client, alice)
    body = client.get("/api/expenses", params={"page": 4, "limit": 20}, headers=alice).json()
    assert body["data"] == []
    assert body["meta"] == {"totalItems": 1, "totalPages": 1, "currentPage": 4, "limit": 20}


def test_list_with_no_records(client, alice):
    body = client.get("/api/expenses", headers=alice).json()
    assert body == {"data": [], "meta": {"totalItems": 0, "totalPages": 0, "currentPage": 1, "limit": 20}}


def test_list_rejects_bad_query_parameters(client, alice):
    for params, param in (
        ({"limit": 0}, "limit"),
        ({"limit": 101}, "limit"),
        ({"page": 0}, "page"),
        ({"page": "two"}, "page"),
        ({"startDate": "yesterday"}, "startDate"),
        ({"endDate": "2025-13-01"}, "endDate"),
        ({"category": "C" * 51}, "category"),
    ):
        response = client.get("/api/expenses", params=params, headers=alice)
        assert response.status_code == 400, params
        assert response.json()["details"][0]["param"] == param


def test_list_reports_every_bad_date_bound(client, alice):
    response = client.get("/api/expenses", params={"startDate": "soon", "endDate": "later"}, headers=alice)
    assert response.status_code == 400
    assert response.json()["details"] == [
        {"param": "startDate", "msg": "Date must be valid ISO date"},
        {"param": "endDate", "msg": "Date must be valid ISO date"},
    ]


def test_list_filters_by_category_and_inclusive_dates(client, alice):
    create(client, alice, date="2025-10-31", category="Food")
    create(client, alice, date="2025-11-01", category="Food")
    create(client, alice, date="2025-11-30", category="Food")
    create(client, alice, date="2025-12-01", category="Food")
    create(client, alice, date="2025-11-15", category="Travel")
    create(client, alice, date="2025-11-15", category="food")

    params = {"category": "Food", "startDate": "2025-11-01", "endDate": "2025-11-30"}
    body = client.get("/api/expenses", params=params, headers=alice).json()
    assert [r["date"] for r in body["data"]] == ["2025-11-30", "2025-11-01"]
    assert body["meta"]["totalItems"] == 2


def test_created_record_is_listed_exactly_once(client, alice):
    create(client, alice, category="Travel", date="2025-08-20")
    record = create(client, alice, category="Bills", date="2025-09-01")
    create(client, alice, category="Bills", date="2025-09-02")

    params = {"category": "Bills", "startDate": "2025-09-01", "endDate": "2025-09-01"}
    data = client.get("/api/expenses", params=params, headers=alice).json()["data"]
    assert [r["id"] for r in data].count(record["id"]) == 1
    assert len(data) == 1


def test_update_changes_only_supplied_fields(client, alice):
    record = create(client, alice)
    response = client.put(f"/api/expenses/{record['id']}", json={"amount": 99, "note": "Dinner"}, headers=alice)
    assert response.status_code == 200
    updated = response.json()
    assert updated["amount"] == 99
    assert updated["note"] == "Dinner"
    assert updated["date"] == record["date"]
    assert updated["currency"] == record["currency"]
    assert updated["category"] == record["category"]
    assert updated["createdAt"] == record["createdAt"]
    assert updated["userId"] == "user-alice"


def test_update_with_empty_body_returns_record(client, alice):
    record = create(client, alice)
    response = client.put(f"/api/expenses/{record['id']}", json={}, headers=alice)
    assert response.status_code == 200
    assert response.json()["id"] == record["id"]


def test_update_validates_supplied_fields(client, alice):
    record = create(client, alice)
    for body, param in (
        ({"amount": 0}, "amount"),
        ({"amount": None}, "amount"),
        ({"date": "not a date"}, "date"),
        ({"note": None}, "note"),
        ({"currency": "TOO-LONG-CODE"}, "currency"),
    ):
        response = client.put(f"/api/expenses/{record['id']}", json=body, headers=alice)
        assert response.status_code == 400, body
        assert response.json()["details"][0]["param"] == param


def test_update_rejects_malformed_id(client, alice):
    response = client.put("/api/expenses/12345", json={"amount": 5}, headers=alice)
    assert response.status_code == 400
    assert response.json() == {"error": "validation", "details": [{"param": "id", "msg": "Invalid id"}]}


def test_update_of_foreign_record_looks_like_missing_record(client, alice, bob):
    record = create(client, alice)
    foreign = client.put(f"/api/expenses/{record['id']}", json={"amount": 1}, headers=bob)
    missing = client.put(f"/api/expenses/{uuid.uuid4()}", json={"amount": 1}, headers=bob)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json() == {"error": "not_found"}

    untouched = client.get("/api/expenses", headers=alice).json()["data"][0]
    assert untouched["amount"] == record["amount"]


def test_update_of_missing_record_does_not_create_it(client, alice, expenses_table):
    response = client.put(f"/api/expenses/{uuid.uuid4()}", json={"amount": 10}, headers=alice)
    assert response.status_code == 404
    assert expenses_table.scan()["Items"] == []


def test_delete_twice(client, alice):
    record = create(client, alice)
    other = create(client, alice)

    first = client.delete(f"/api/expenses/{record['id']}", headers=alice)
    assert first.status_code == 200
    assert first.json() == {"success": True}

    second = client.delete(f"/api/expenses/{record['id']}", headers=alice)
    assert second.status_code == 404
    assert second.json() == {"error": "not_found"}

    remaining = client.get("/api/expenses", headers=alice).json()["data"]
    assert [r["id"] for r in remaining] == [other["id"]]


def test_delete_of_foreign_record_looks_like_missing_record(client, alice, bob):
    record = create(client, alice)
    foreign = client.delete(f"/api/expenses/{record['id']}", headers=bob)
    missing = client.delete(f"/api/expenses/{uuid.uuid4()}", headers=bob)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()
    assert client.get("/api/expenses", headers=alice).json()["meta"]["totalItems"] == 1


def test_delete_rejects_malformed_id(client, alice):
    response = client.delete("/api/expenses/not-an-id", headers=alice)
    assert response.status_code == 400
    assert response.json()["details"] == [{"param": "id", "msg": "Invalid id"}]


def break_table(table, monkeypatch):
    def fail(**kwargs):
        raise ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "secret internals"}},
            "Query",
        )

    for method in ("query", "put_item", "update_item", "delete_item", "get_item", "scan"):
        monkeypatch.setattr(table, method, fail)


def test_storage_failures_are_opaque(client, alice, expenses_table, monkeypatch):
    break_table(expenses_table, monkeypatch)

    responses = [
        client.get("/api/expenses", headers=alice),
        client.post("/api/expenses", json=lunch, headers=alice),
        client.put(f"/api/expenses/{uuid.uuid4()}", json={"amount": 3}, headers=alice),
        client.delete(f"/api/expenses/{uuid.uuid4()}", headers=alice),
    ]
    for response in responses:
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "secret" not in response.text


def test_validation_errors_win_over_storage_failures(client, alice, expenses_table, monkeypatch):
    break_table(expenses_table, monkeypatch)
    response = client.post("/api/expenses", json=dict(lunch, amount=-3), headers=alice)
    assert response.status_code == 400


def test_export_csv(client, alice, bob):
    create(client, alice, date="2025-11-02", note="Taxi, airport", category="Travel", amount=40)
    create(client, alice, date="2025-11-05", note="Groceries", category="Food", amount=12.5)
    create(client, bob, note="not mine")

    response = client.get("/api/expenses/export", params={"startDate": "2025-11-01"}, headers=alice)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="expenses_2025-11-01_end.csv"' in response.headers["content-disposition"]
    lines = response.text.strip().split("\n")
    assert lines[0] == "date,amount,currency,category,note"
    assert lines[1] == "2025-11-05,12.5,$,Food,Groceries"
    assert lines[2] == '2025-11-02,40,$,Travel,"Taxi, airport"'
    assert len(lines) == 3


def test_health_endpoints(client):
    assert client.get("/").json()["message"].startswith("Welcome")
    assert client.get("/api/health").json()["status"] == "healthy"
    status = client.get("/api/status").json()
    assert status["services"]["dynamodb"]["connected"] is True
    assert status["overall_status"] == "healthy"
