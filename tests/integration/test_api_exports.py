"""
Integration tests for the export service HTTP surface.
"""
from __future__ import annotations

import io

import pytest
from fastapi.testclient import TestClient
from pypdf import PdfReader

from apps.api.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def _open_access(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("HOPETRACK_EXPORT_TOKEN", raising=False)
    monkeypatch.delenv("HOPETRACK_REQUIRE_TOKEN", raising=False)


def _make_case(**overrides) -> dict:
    case = {
        "id": 21,
        "first_name": "Ana",
        "last_name": "Cruz",
        "status": "active",
        "case_type": "Residential",
        "family_members": [{"name": "Ben Cruz", "relation": "Brother"}],
    }
    case.update(overrides)
    return case


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-Id" in response.headers


def test_single_case_pdf():
    response = client.post("/export/case/pdf", json=_make_case())
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="HOPETRACK_CaseReport_Ana_Cruz_' in response.headers["content-disposition"]
    assert response.content[:5] == b"%PDF-"


def test_single_case_csv_has_bom():
    response = client.post("/export/case/csv", json=_make_case())
    assert response.status_code == 200
    assert response.content.startswith(b"\xef\xbb\xbf")
    assert ".xls" in response.headers["content-disposition"]


def test_single_case_docx():
    response = client.post("/export/case/docx", json=_make_case())
    assert response.status_code == 200
    assert response.content[:2] == b"PK"


def test_unknown_format_rejected():
    response = client.post("/export/case/xml", json=_make_case())
    assert response.status_code == 422


def test_list_pdf():
    response = client.post("/export/cases/pdf-html", json={"cases": [_make_case(), _make_case(id=22)]})
    assert response.status_code == 200
    assert 'filename="HOPETRACK_AllCases_List_' in response.headers["content-disposition"]
    assert len(PdfReader(io.BytesIO(response.content)).pages) == 1


def test_list_pdf_with_details():
    response = client.post(
        "/export/cases/pdf-html",
        json={"cases": [_make_case(), _make_case(id=22)], "listOnly": False},
    )
    assert response.status_code == 200
    assert len(PdfReader(io.BytesIO(response.content)).pages) >= 3


def test_list_pdf_requires_cases():
    response = client.post("/export/cases/pdf-html", json={"cases": []})
    assert response.status_code == 400
    assert response.json()["detail"] == "No cases provided"


def test_list_pdf_ids_only():
    response = client.post("/export/cases/pdf-html", json={"ids": ["21"]})
    assert response.status_code == 400
    assert "cases array" in response.json()["detail"]


def test_archived_list_excel():
    response = client.post("/export/cases/excel", json={"cases": [_make_case(status="archived")], "archived": True})
    assert response.status_code == 200
    assert 'filename="HOPETRACK_ArchivedCases_List_' in response.headers["content-disposition"]
    assert response.headers["content-type"].startswith("application/vnd.ms-excel")


def test_list_csv():
    response = client.post("/export/cases/csv", json={"cases": [_make_case()]})
    assert response.status_code == 200
    body = response.content.decode("utf-8-sig")
    assert body.splitlines()[0] == '"Name","Age","Program","Last Updated"'


# ── Token enforcement ─────────────────────────────────────────────────────


class TestToken:
    def test_missing_token(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("HOPETRACK_EXPORT_TOKEN", "s3cret")
        response = client.post("/export/case/pdf", json=_make_case())
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    def test_wrong_token(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("HOPETRACK_EXPORT_TOKEN", "s3cret")
        response = client.post("/export/case/pdf", json=_make_case(), headers={"x-auth-token": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    @pytest.mark.parametrize(
        "headers",
        [{"x-auth-token": "s3cret"}, {"Authorization": "Bearer s3cret"}],
    )
    def test_accepted_token(self, monkeypatch: pytest.MonkeyPatch, headers):
        monkeypatch.setenv("HOPETRACK_EXPORT_TOKEN", "s3cret")
        response = client.post("/export/case/csv", json=_make_case(), headers=headers)
        assert response.status_code == 200

    def test_required_but_unconfigured(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("HOPETRACK_REQUIRE_TOKEN", "true")
        response = client.post("/export/case/csv", json=_make_case())
        assert response.status_code == 500
