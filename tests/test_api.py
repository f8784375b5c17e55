"""
Tests for the FastAPI extraction endpoints.
"""

import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.main import app
from dsx_extractor.batch import DSXDocument, process_dsx_documents
from tests.conftest import build_orders_job


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def dsx_upload(name="orders.dsx", job_name="OrdersCopy"):
    return ("files", (name, build_orders_job(job_name).encode("utf-8"), "application/octet-stream"))


def zip_upload(entries, name="jobs.zip"):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for entry, content in entries.items():
            zf.writestr(entry, content)
    return ("files", (name, buffer.getvalue(), "application/zip"))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_api_root(client):
    data = client.get("/api").json()
    assert set(data["endpoints"]) == {"extract", "export"}


class TestExtract:

    def test_single_dsx(self, client):
        response = client.post("/api/jobs/extract", files=[dsx_upload()])
        assert response.status_code == 200
        data = response.json()
        assert data["totalJobs"] == 1
        result = data["results"][0]
        assert result["originalFile"] == "orders.dsx"
        assert result["summary"]["name"] == "OrdersCopy"
        assert result["summary"]["sources"] == 1
        assert result["validation"] == {"valid": True, "issues": []}
        assert result["tokenUsage"]["total"] == result["data"]["metadata"]["tokenCount"]
        assert data["failures"] == []

    def test_result_keys_match_batch_result(self, client):
        result = client.post("/api/jobs/extract", files=[dsx_upload()]).json()["results"][0]
        document = DSXDocument(name="orders.dsx", content=build_orders_job())
        expected = process_dsx_documents([document], include_token_count=True)[0].to_dict()
        assert set(result) == set(expected) | {"summary"}

    def test_token_count_can_be_disabled(self, client):
        response = client.post(
            "/api/jobs/extract", files=[dsx_upload()], data={"include_token_count": "false"}
        )
        result = response.json()["results"][0]
        assert result["tokenUsage"] is None
        assert "tokenCount" not in result["data"]["metadata"]

    def test_zip_and_dsx_together(self, client):
        files = [
            zip_upload({"A.dsx": build_orders_job("A"), "B.dsx": build_orders_job("B"), "notes.txt": "x"}),
            dsx_upload("C.dsx", "C"),
        ]
        data = client.post("/api/jobs/extract", files=files).json()
        assert [r["originalFile"] for r in data["results"]] == ["A.dsx", "B.dsx", "C.dsx"]

    def test_invalid_extension(self, client):
        files = [("files", ("job.xml", b"<xml/>", "text/xml"))]
        response = client.post("/api/jobs/extract", files=files)
        assert response.status_code == 400
        assert "Invalid file type" in response.json()["detail"]

    def test_corrupt_archive(self, client):
        files = [("files", ("jobs.zip", b"not a zip", "application/zip"))]
        response = client.post("/api/jobs/extract", files=files)
        assert response.status_code == 400
        assert "jobs.zip" in response.json()["detail"]

    def test_corrupt_archive_alongside_valid_upload(self, client):
        files = [("files", ("broken.zip", b"not a zip", "application/zip")), dsx_upload()]
        response = client.post("/api/jobs/extract", files=files)
        assert response.status_code == 200
        data = response.json()
        assert data["totalJobs"] == 1
        assert [f["file"] for f in data["failures"]] == ["broken.zip"]

    def test_archive_without_dsx(self, client):
        response = client.post("/api/jobs/extract", files=[zip_upload({"notes.txt": "x"})])
        assert response.status_code == 400
        assert response.json()["detail"] == "No .dsx files found in upload"

    def test_upload_limit(self, client):
        app.dependency_overrides[get_settings] = lambda: Settings(max_upload_mb=0)
        response = client.post("/api/jobs/extract", files=[dsx_upload()])
        assert response.status_code == 413


def test_export(client):
    response = client.post("/api/jobs/export", files=[dsx_upload(), dsx_upload("copy.dsx")])
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert 'filename="datastage_jobs.zip"' in response.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert zf.namelist() == ["OrdersCopy.json", "OrdersCopy_2.json"]
