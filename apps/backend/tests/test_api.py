"""Tests for the resume HTTP endpoints."""

import json

import pytest
from fastapi.testclient import TestClient

from main import app
from resume_builder.errors import RenderError, RenderTimeoutError
from resume_builder.schemas.document import default_document, serialize_document
from resume_builder.services.persistence import PersistenceBridge
from resume_builder.services.preview import PreviewController
from resume_builder.services.section_store import SectionStore
from resume_builder.services.session import ResumeSession
from resume_builder.services.text_proof import TextProofRenderer

BASE = "/api/v1/resume"


def make_session(memory_store, scheduler, pdf_renderer=None):
    renderer = TextProofRenderer()
    return ResumeSession(
        SectionStore(default_document()),
        PersistenceBridge(memory_store, scheduler, key="resume", delay=1.0),
        PreviewController(renderer, scheduler, delay=1.0, min_width=200, max_width=450),
        pdf_renderer or renderer,
    )


@pytest.fixture
def session(memory_store, scheduler):
    return make_session(memory_store, scheduler)


@pytest.fixture
def client(session):
    app.state.session = session
    yield TestClient(app)
    app.state.session = None


class TestDocument:
    def test_get_document(self, client):
        response = client.get(BASE)
        assert response.status_code == 200
        assert [s["type"] for s in response.json()["sections"]] == [
            "personalDetails",
            "skills",
            "educations",
            "employmentHistory",
        ]

    def test_no_session(self):
        app.state.session = None
        response = TestClient(app).get(BASE)
        assert response.status_code == 503


class TestSections:
    def test_append(self, client):
        response = client.post(f"{BASE}/sections", json={"type": "languages"})
        assert response.status_code == 201
        assert response.json()["index"] == 4
        assert response.json()["section"]["title"] == "Languages"

    def test_append_duplicate_conflicts(self, client):
        response = client.post(f"{BASE}/sections", json={"type": "skills"})
        assert response.status_code == 409

    def test_append_unknown_type(self, client):
        response = client.post(f"{BASE}/sections", json={"type": "hobbies"})
        assert response.status_code == 422
        assert response.json()["detail"][0]["code"] == "unknown_section_type"

    def test_append_non_string_type(self, client):
        response = client.post(f"{BASE}/sections", json={"type": ["skills"]})
        assert response.status_code == 422
        assert response.json()["detail"][0]["code"] == "unknown_section_type"

    def test_update(self, client, session):
        response = client.patch(f"{BASE}/sections/0", json={"firstName": "Ada"})
        assert response.status_code == 200
        assert response.json()["firstName"] == "Ada"
        assert session.store.get(0).first_name == "Ada"

    def test_update_bad_dates(self, client):
        response = client.patch(f"{BASE}/sections/2", json={
            "educations": [{"startDate": "2020-01-01", "endDate": "2019-01-01"}],
        })
        assert response.status_code == 422
        assert response.json()["detail"][0]["path"] == "sections[2].educations[0].endDate"

    def test_update_type_is_rejected(self, client):
        response = client.patch(f"{BASE}/sections/1", json={"type": "languages"})
        assert response.status_code == 422
        assert response.json()["detail"][0]["code"] == "immutable_type"

    def test_missing_section(self, client):
        assert client.get(f"{BASE}/sections/9").status_code == 404
        assert client.patch(f"{BASE}/sections/9", json={}).status_code == 404
        assert client.delete(f"{BASE}/sections/9").status_code == 404

    def test_delete_shifts(self, client):
        response = client.delete(f"{BASE}/sections/1")
        assert response.json()["type"] == "skills"
        assert client.get(f"{BASE}/sections/1").json()["type"] == "educations"

    def test_move(self, client):
        response = client.post(f"{BASE}/sections/3/move", json={"newIndex": 0})
        assert response.status_code == 200
        assert response.json()["sections"][0]["type"] == "employmentHistory"
        assert client.post(f"{BASE}/sections/0/move", json={"newIndex": 7}).status_code == 404


def test_update_settings(client):
    response = client.put(f"{BASE}/settings", json={"fontSize": 14})
    assert response.status_code == 200
    assert response.json() == {"fontFamily": "courier", "fontSize": 14}


class TestImportExport:
    def test_export(self, client):
        response = client.get(f"{BASE}/export")
        assert response.status_code == 200
        assert response.headers["content-disposition"] == "attachment; filename=resume.json"
        assert response.json() == json.loads(serialize_document(default_document()))

    def test_import_requires_confirmation(self, client, session, memory_store, ada_document):
        response = client.post(f"{BASE}/import", content=serialize_document(ada_document))
        assert response.status_code == 200
        body = response.json()
        assert body["requiresConfirmation"] is True
        assert body["imported"] is False
        assert session.document == default_document()
        assert memory_store.write_count == 0

    def test_confirmed_import(self, client, session, memory_store, ada_document):
        response = client.post(
            f"{BASE}/import",
            params={"confirm": "true"},
            content=serialize_document(ada_document),
        )
        assert response.status_code == 200
        assert response.json()["imported"] is True
        assert session.document == ada_document
        assert memory_store.write_count == 1

    @pytest.mark.parametrize(
        "content, kind",
        [
            (b"\xff\xfe\xfa", "read_error"),
            (b"not json", "invalid_json"),
            (b'{"sections": [{"type": "hobbies"}]}', "invalid_schema"),
        ],
    )
    def test_rejected_import(self, client, session, content, kind):
        response = client.post(f"{BASE}/import", params={"confirm": "true"}, content=content)
        assert response.status_code == 400
        assert response.json()["detail"]["kind"] == kind
        assert session.document == default_document()


class TestPreview:
    def test_status(self, client):
        body = client.get(f"{BASE}/preview").json()
        assert body["state"] == "idle"
        assert body["width"] == 450
        assert body["totalPages"] == 0

    def test_resize(self, client):
        assert client.post(f"{BASE}/preview/resize", json={"availableWidth": 100}).json()["width"] == 200

    def test_navigation_is_clamped(self, client):
        assert client.post(f"{BASE}/preview/page", json={"page": 3}).json()["currentPage"] == 1
        assert client.post(f"{BASE}/preview/next").json()["currentPage"] == 1
        assert client.post(f"{BASE}/preview/previous").json()["currentPage"] == 1


class TestDownload:
    def test_download(self, client):
        response = client.get(f"{BASE}/download")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "attachment" in response.headers["content-disposition"]

    @pytest.mark.parametrize(
        "error, status_code",
        [(RenderError("broken"), 500), (RenderTimeoutError("slow"), 504)],
    )
    def test_render_failures(self, memory_store, scheduler, error, status_code):
        class FailingRenderer:
            async def render(self, tree, hints=None):
                raise error

        app.state.session = make_session(memory_store, scheduler, FailingRenderer())
        try:
            response = TestClient(app).get(f"{BASE}/download")
        finally:
            app.state.session = None
        assert response.status_code == status_code
