# salesscope/modules/datasets/tests/test_dataset_routes.py

from salesscope.core.auth import create_access_token

SALES_CSV = (
    "date,revenue,quantity,product,category\n"
    "2024-01-01,100,2,Widget,Hardware\n"
    "2024-01-02,50,1,Gadget,Hardware\n"
).encode("utf-8")


async def upload(client, headers, content=SALES_CSV, filename="january.csv", content_type="text/csv", data=None):
    return await client.post(
        "/api/datasets/upload",
        files={"file": (filename, content, content_type)},
        data=data or {},
        headers=headers,
    )


class TestUploadRoute:

    async def test_upload_creates_ready_dataset(self, client, auth_headers, organization):
        response = await upload(client, auth_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["name"] == "january"
        assert body["data"]["status"] == "READY"
        assert body["data"]["row_count"] == 2
        assert body["data"]["organization_id"] == organization.id
        assert body["data"]["file_size"] == len(SALES_CSV)

    async def test_explicit_name(self, client, auth_headers):
        response = await upload(client, auth_headers, data={"name": "Q1 sales"})

        assert response.json()["data"]["name"] == "Q1 sales"

    async def test_non_csv_rejected(self, client, auth_headers):
        response = await upload(
            client, auth_headers, filename="report.pdf", content_type="application/pdf"
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_FILE_TYPE"

    async def test_oversize_upload_rejected(self, client, auth_headers, monkeypatch):
        from salesscope.core.config import get_settings

        monkeypatch.setattr(get_settings(), "max_upload_size_mb", 0)
        response = await upload(client, auth_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "FILE_TOO_LARGE"

    async def test_missing_required_column(self, client, auth_headers):
        response = await upload(client, auth_headers, content=b"product,revenue\nWidget,10\n")

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "SCHEMA_VALIDATION_ERROR"
        assert body["details"]["field"] == "date"

    async def test_empty_file(self, client, auth_headers):
        response = await upload(client, auth_headers, content=b"date,revenue\n")

        assert response.status_code == 400
        assert response.json()["error_code"] == "EMPTY_FILE"

    async def test_requires_authentication(self, client):
        response = await upload(client, {})

        assert response.status_code == 401

    async def test_rejects_invalid_token(self, client):
        response = await upload(client, {"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTH_FAILED"


class TestDatasetRoutes:

    async def test_list_get_delete(self, client, auth_headers):
        created = (await upload(client, auth_headers)).json()["data"]

        listing = await client.get("/api/datasets", headers=auth_headers)
        assert listing.status_code == 200
        assert listing.json()["pagination"] == {"page": 1, "limit": 20, "total": 1, "total_pages": 1}
        assert listing.json()["data"][0]["id"] == created["id"]

        detail = await client.get(f"/api/datasets/{created['id']}", headers=auth_headers)
        assert detail.status_code == 200
        assert len(detail.json()["data"]["sales_records"]) == 2

        deleted = await client.delete(f"/api/datasets/{created['id']}", headers=auth_headers)
        assert deleted.status_code == 200
        assert deleted.json()["success"] is True

        missing = await client.get(f"/api/datasets/{created['id']}", headers=auth_headers)
        assert missing.status_code == 404
        assert missing.json()["error_code"] == "NOT_FOUND"

    async def test_other_organization_cannot_read(self, client, auth_headers, other_organization):
        created = (await upload(client, auth_headers)).json()["data"]
        other_headers = {
            "Authorization": f"Bearer {create_access_token('someone-else', other_organization.id)}"
        }

        response = await client.get(f"/api/datasets/{created['id']}", headers=other_headers)

        assert response.status_code == 404

    async def test_limit_above_maximum_rejected(self, client, auth_headers):
        response = await client.get("/api/datasets?limit=500", headers=auth_headers)

        assert response.status_code == 422
