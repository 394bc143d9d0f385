from datetime import date

from fastapi.testclient import TestClient

from billia.api.main import app

client = TestClient(app)


def auth(email="owner@example.com", name="owner"):
    return {"x-auth-request-user": name, "x-auth-request-email": email}


def _tenant(name="山田太郎", kana="ﾔﾏﾀﾞﾀﾛｳ", amount=80000, group_id=None):
    r = client.post(
        "/tenants/",
        json={"name": name, "name_kana": kana, "amount": amount, "group_id": group_id},
        headers=auth(),
    )
    assert r.status_code == 201, r.text
    return r.json()


def test_groups_and_tenants():
    r = client.post("/tenant-groups/", json={"name": "1号棟"}, headers=auth())
    group = r.json()
    tenant = _tenant(group_id=group["id"])
    assert tenant["group_name"] == "1号棟"

    r = client.get("/tenant-groups/", headers=auth())
    assert r.json()[0]["tenant_count"] == 1

    r = client.put(f"/tenant-groups/{group['id']}", json={"name": "A棟"}, headers=auth())
    assert r.json()["name"] == "A棟"

    r = client.get(f"/tenants/?group_id={group['id']}", headers=auth())
    assert [t["id"] for t in r.json()] == [tenant["id"]]

    r = client.put(f"/tenants/{tenant['id']}", json={"amount": 85000}, headers=auth())
    assert r.json()["amount"] == 85000
    assert r.json()["group_id"] == group["id"]

    assert client.delete(f"/tenant-groups/{group['id']}", headers=auth()).status_code == 204
    assert client.get(f"/tenants/{tenant['id']}", headers=auth()).json()["group_id"] is None


def test_import_clients_as_tenants():
    r = client.post("/tenants/import-clients", headers=auth())
    assert r.status_code == 422

    client.post("/clients/", json={"name": "佐藤商店"}, headers=auth())
    r = client.post("/tenants/import-clients", headers=auth())
    assert r.json() == {"imported_count": 1}


def test_payments_update_monthly_status():
    tenant = _tenant()
    r = client.post(
        "/payments/",
        json={"tenant_id": tenant["id"], "amount": 30000, "payment_date": "2024-05-02"},
        headers=auth(),
    )
    assert r.status_code == 201, r.text
    first = r.json()
    assert first["note"] == "2024-05分"

    r = client.get(f"/tenants/{tenant['id']}/payment-status?month=2024-05", headers=auth())
    status_row = r.json()
    assert status_row["status"] == "PARTIAL"
    assert status_row["paid_amount"] == 30000

    client.post(
        "/payments/",
        json={"tenant_id": tenant["id"], "amount": 50000, "payment_date": "2024-05-25"},
        headers=auth(),
    )
    r = client.get("/payment-statuses/?month=2024-05", headers=auth())
    rows = r.json()
    assert len(rows) == 1
    assert rows[0]["status"] == "PAID"
    assert rows[0]["tenant_name"] == "山田太郎"
    assert len(rows[0]["payments"]) == 2

    assert client.delete(f"/payments/{first['id']}", headers=auth()).status_code == 204
    r = client.get(f"/tenants/{tenant['id']}/payment-status?month=2024-05", headers=auth())
    assert r.json()["status"] == "PARTIAL"

    r = client.put(f"/payment-statuses/{status_row['id']}", json={"status": "PAID"}, headers=auth())
    assert r.json()["status"] == "PAID"

    r = client.get(f"/tenants/{tenant['id']}/payments", headers=auth())
    assert [p["amount"] for p in r.json()] == [50000]


def test_payment_input_is_validated():
    tenant = _tenant()
    r = client.post(
        "/payments/",
        json={"tenant_id": tenant["id"], "amount": 0, "payment_date": "2024-05-02"},
        headers=auth(),
    )
    assert r.status_code == 422
    r = client.post(
        "/payments/",
        json={"tenant_id": "abc", "amount": 100, "payment_date": "2024-05-02"},
        headers=auth(),
    )
    assert r.status_code == 422
    r = client.get(f"/tenants/{tenant['id']}/payment-status?month=2024-5", headers=auth())
    assert r.status_code == 422


def test_tenant_with_template_cannot_be_deleted():
    tenant = _tenant()
    r = client.post(
        "/recurring/",
        json={
            "tenant_id": tenant["id"],
            "creation_day": 1,
            "start_date": "2030-01-01",
            "items": [{"name": "家賃", "unit_price": 80000}],
        },
        headers=auth(),
    )
    assert r.status_code == 201, r.text
    assert r.json()["next_execution_date"] == "2030-01-01"
    assert client.delete(f"/tenants/{tenant['id']}", headers=auth()).status_code == 409


STATEMENT = (
    "日付,摘要,金額,振込人\n"
    "2024/05/27,振込,80000,ｶ)ﾔﾏﾀﾞﾀﾛｳ\n"
    "2024/05/28,振込,60000,ｽｽﾞｷﾊﾅｺ\n"
    "2024/05/28,振込,850000,ﾘｺ-ﾘ-ｽ\n"
)


def test_reconcile_preview_and_apply():
    tenant = _tenant()
    _tenant(name="鈴木一郎", kana="ｽｽﾞｷｲﾁﾛｳ", amount=60000)
    files = {"file": ("may.csv", STATEMENT.encode("cp932"), "text/csv")}

    r = client.post("/reconcile", files=files, headers=auth())
    assert r.status_code == 200, r.text
    body = r.json()
    assert [row["status"] for row in body["rows"]] == ["matched", "review", "matched"]
    assert body["applied_count"] == 0

    r = client.post("/reconcile", files=files, data={"apply": "true"}, headers=auth())
    assert r.json()["applied_count"] == 1
    r = client.get(f"/tenants/{tenant['id']}/payments", headers=auth())
    assert [(p["amount"], p["payment_date"]) for p in r.json()] == [(80000, "2024-05-27")]

    r = client.get("/audit-logs/?action_type=reconcile_run", headers=auth())
    assert len(r.json()) == 2


def test_reconcile_rejects_non_csv_and_disabled_feature(monkeypatch):
    r = client.post("/reconcile", files={"file": ("may.xlsx", b"PK", "application/octet-stream")}, headers=auth())
    assert r.status_code == 422

    monkeypatch.setenv("FEATURE_RECONCILIATION_ENABLED", "false")
    from billia.utils.feature_flags import refresh_feature_flag_cache

    refresh_feature_flag_cache()
    r = client.post("/reconcile", files={"file": ("may.csv", b"a,b", "text/csv")}, headers=auth())
    assert r.status_code == 503


def _due_template():
    tenant = _tenant()
    today = date.today()
    r = client.post(
        "/recurring/",
        json={
            "tenant_id": tenant["id"],
            "creation_day": today.day,
            "start_date": today.isoformat(),
            "items": [{"name": "家賃", "unit_price": 80000}],
        },
        headers=auth(),
    )
    assert r.status_code == 201, r.text
    return r.json()


def test_cron_execute_requires_secret(monkeypatch):
    template = _due_template()
    monkeypatch.setenv("CRON_SECRET", "s3cret")

    assert client.post("/recurring/execute").status_code == 401
    assert client.post("/recurring/execute", headers={"Authorization": "Bearer wrong"}).status_code == 401

    r = client.post("/recurring/execute", headers={"Authorization": "Bearer s3cret"})
    assert r.status_code == 200, r.text
    report = r.json()
    assert report["processed"] == 1
    assert report["results"][0]["status"] == "created"
    assert report["results"][0]["template_id"] == template["id"]

    r = client.get("/invoices/recurring-this-month", headers=auth())
    assert len(r.json()) == 1

    r = client.post("/recurring/execute", headers={"Authorization": "Bearer s3cret"})
    assert r.json()["processed"] == 0


def test_cron_execute_when_disabled(monkeypatch):
    monkeypatch.setenv("FEATURE_RECURRING_ENABLED", "false")
    from billia.utils.feature_flags import refresh_feature_flag_cache

    refresh_feature_flag_cache()
    assert client.post("/recurring/execute").status_code == 503


def test_manual_run_is_superadmin_only(monkeypatch):
    _due_template()
    assert client.post("/recurring/run", headers=auth()).status_code == 403

    monkeypatch.setenv("ADMIN_EMAILS", "root@example.com")
    r = client.post("/recurring/run", headers=auth("root@example.com", "root"))
    assert r.status_code == 200
    assert r.json()["results"][0]["status"] == "created"


def test_template_toggle_and_delete():
    template = _due_template()
    r = client.put(f"/recurring/{template['id']}/active", json={"is_active": False}, headers=auth())
    assert r.json()["is_active"] is False
    assert client.post("/recurring/execute").json()["processed"] == 0

    assert client.delete(f"/recurring/{template['id']}", headers=auth()).status_code == 204
    assert client.get(f"/recurring/{template['id']}", headers=auth()).status_code == 404
