"""
Integration tests: CSV import pipeline through the HTTP API.

Uses the temp SQLite DB configured in conftest.py.
"""
import pytest
from fastapi.testclient import TestClient

from lodge_ledger.main import app

HEADER = (
    "Room No.,Tenant Name,Year,Month,Date,Rent,"
    "Reading (Prev.),Reading (Curr.),Price/Unit,Paid,Remark\n"
)

MARCH_2023 = HEADER + (
    "105,Asha,2023,3,2023-03-05,5000,100,150,8,5400,\n"
    "204,Ravi,2023,3,,4000,300,340,8,1000,cash short\n"
    "abc,Ghost,2023,3,2023-03-05,1,1,1,1,1,\n"
)


def _upload(content: str, name: str = "march.csv"):
    return {"file": (name, content.encode("utf-8"), "text/csv")}


@pytest.fixture(scope="module")
def client():
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


class TestHealth:
    def test_health(self, client):
        r = client.get("/api/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "ok"
        assert data["db"] == "ok"

    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200


class TestPreview:
    def test_preview_calculates_without_writing(self, client):
        r = client.post("/api/import/preview", files=_upload(MARCH_2023))
        assert r.status_code == 200
        data = r.json()
        assert data["total_rows"] == 3
        assert data["valid_rows"] == 2
        assert data["errors"] == ["Row 3: Invalid room number 'abc'"]
        assert data["warnings"] == ["Row 2: Date is missing"]

        first = data["rows"][0]
        assert first["row_number"] == 1
        assert first["record"]["total"] == 5400
        assert first["record"]["status"] == "paid"
        assert first["record"]["payment_date"] == "2023-03-05"
        assert data["rows"][1]["warnings"] == ["Row 2: Date is missing"]

        r = client.get("/api/payments?year=2023")
        assert r.json()["total"] == 0

    def test_preview_missing_columns(self, client):
        r = client.post(
            "/api/import/preview",
            files=_upload("Room No.,Tenant Name,Year,Month\n101,Asha,2023,3\n"),
        )
        assert r.status_code == 400
        assert "Missing required columns" in r.json()["detail"]


class TestImport:
    def test_import_upload(self, client):
        r = client.post("/api/import", files=_upload(MARCH_2023))
        assert r.status_code == 200
        data = r.json()
        assert data["file_name"] == "march.csv"
        assert data["status"] == "partial"
        assert data["total_rows"] == 3
        assert data["success_count"] == 2
        assert data["updated_count"] == 0
        assert data["error_count"] == 1
        assert data["warning_count"] == 1
        assert data["errors"] == ["Row 3: Invalid room number 'abc'"]

    def test_reimport_updates(self, client):
        r = client.post("/api/import", files=_upload(MARCH_2023))
        data = r.json()
        assert data["success_count"] == 0
        assert data["updated_count"] == 2

        r = client.get("/api/payments?year=2023&month=3")
        assert r.json()["total"] == 2

    def test_import_from_path(self, client, tmp_path):
        path = tmp_path / "april.csv"
        path.write_text(HEADER + "106,Lata,2023,4,2023-04-02,4800,10,20,8,4880,\n")
        r = client.post("/api/import", params={"path": str(path)})
        assert r.status_code == 200
        assert r.json()["success_count"] == 1

    def test_import_header_only_rejected(self, client):
        r = client.post("/api/import", files=_upload(HEADER))
        assert r.status_code == 400
        assert "empty" in r.json()["detail"]

    def test_import_bad_path(self, client):
        r = client.post("/api/import?path=/nonexistent/file.csv")
        assert r.status_code == 404

    def test_import_no_params(self, client):
        r = client.post("/api/import")
        assert r.status_code == 400


class TestPayments:
    def test_list_filters(self, client):
        client.post("/api/import", files=_upload(MARCH_2023))
        r = client.get("/api/payments?year=2023&month=3&floor=2")
        assert r.status_code == 200
        items = r.json()["items"]
        assert [p["room_number"] for p in items] == [204]
        assert items[0]["status"] == "partial"
        assert items[0]["balance_type"] == "due"
        assert items[0]["remark"] == "cash short"

    def test_list_by_status(self, client):
        client.post("/api/import", files=_upload(MARCH_2023))
        r = client.get("/api/payments?year=2023&status=paid")
        rooms = {p["room_number"] for p in r.json()["items"]}
        assert 105 in rooms
        assert 204 not in rooms

    def test_pagination(self, client):
        r = client.get("/api/payments?page=1&page_size=1")
        assert r.status_code == 200
        assert len(r.json()["items"]) <= 1

    def test_get_payment(self, client):
        client.post("/api/import", files=_upload(MARCH_2023))
        r = client.get("/api/payments/105_2023_3")
        assert r.status_code == 200
        data = r.json()
        assert data["id"] == "105_2023_3"
        assert data["floor"] == 1
        assert data["source"] == "csv_import"
        assert data["tenant_validated"] is False

    def test_get_payment_not_found(self, client):
        r = client.get("/api/payments/999_2023_3")
        assert r.status_code == 404


class TestImportLogs:
    def test_list_newest_first(self, client):
        client.post("/api/import", files=_upload(MARCH_2023, name="first.csv"))
        client.post("/api/import", files=_upload(MARCH_2023, name="second.csv"))
        r = client.get("/api/import-logs?limit=2")
        assert r.status_code == 200
        logs = r.json()
        assert [l["file_name"] for l in logs] == ["second.csv", "first.csv"]

    def test_log_detail(self, client):
        r = client.post("/api/import", files=_upload(MARCH_2023))
        log_id = r.json()["id"]
        r = client.get(f"/api/import-logs/{log_id}")
        assert r.status_code == 200
        data = r.json()
        assert data["warnings"] == ["Row 2: Date is missing"]
        assert data["errors"] == ["Row 3: Invalid room number 'abc'"]

    def test_log_not_found(self, client):
        r = client.get("/api/import-logs/99999")
        assert r.status_code == 404
