"""Tests for resource upload, metadata, notes, move and delete endpoints."""

import base64
import hashlib

from curiocity.exceptions import ExtractionError
from tests.conftest import FakeExtractor, make_document, upload_file


def _document(client, **kwargs) -> dict:
    return client.post("/documents", json=make_document(**kwargs)).json()


class TestUpload:

    def test_upload_into_evidence_folder(self, client):
        doc = _document(client)
        client.post(f"/documents/{doc['id']}/folders", json={"folderName": "Evidence"})

        resp = upload_file(client, doc["id"], folder_name="Evidence")

        assert resp.status_code == 201
        data = resp.json()
        meta = data["resourceMeta"]
        assert meta["hash"] == hashlib.md5(b"0123456789").hexdigest()
        assert meta["documentId"] == doc["id"]
        assert [r["id"] for r in data["document"]["folders"]["Evidence"]["resources"]] == [meta["id"]]
        assert data["storage"]["s3Success"] is True
        assert data["storage"]["r2Success"] is True

    def test_same_bytes_in_two_documents(self, client):
        a = _document(client, name="A")
        b = _document(client, name="B")
        first = upload_file(client, a["id"]).json()
        second = upload_file(client, b["id"]).json()

        assert first["resourceMeta"]["id"] != second["resourceMeta"]["id"]
        assert first["resourceMeta"]["hash"] == second["resourceMeta"]["hash"]
        assert second["storage"] is None

    def test_extraction_failure_is_500(self, client, clients):
        clients.extractor = FakeExtractor(error=ExtractionError("parser down", "a.pdf"))
        doc = _document(client)

        resp = upload_file(client, doc["id"], filename="a.pdf", content_type="application/pdf")

        assert resp.status_code == 500
        assert resp.json()["error"] == "EXTRACTION_FAILED"
        assert resp.json()["details"] == {"filename": "a.pdf"}
        folder = client.get(f"/documents/{doc['id']}").json()["folders"]["General"]
        assert folder["resources"] == []

    def test_content_and_check(self, client):
        doc = _document(client)
        digest = upload_file(client, doc["id"]).json()["resourceMeta"]["hash"]

        assert client.get("/resources/check", params={"hash": digest}).json() == {"exists": True}
        assert client.get("/resources/check", params={"hash": "0" * 32}).json() == {"exists": False}
        content = client.get(f"/resources/content/{digest}").json()
        assert content["id"] == digest
        assert content["markdown"] == "Disabled Processing"

    def test_unknown_content_is_404(self, client):
        assert client.get(f"/resources/content/{'0' * 32}").status_code == 404

    def test_missing_document_is_404(self, client):
        assert upload_file(client, "nope").status_code == 404

    def test_missing_form_field_is_400(self, client):
        resp = client.post("/resources", files={"file": ("a.txt", b"x", "text/plain")}, data={"documentId": "d1"})
        assert resp.status_code == 400

    def test_base64_upload(self, client):
        doc = _document(client)
        resp = client.post("/resources/base64", json={
            "documentId": doc["id"],
            "folderName": "General",
            "name": "a.txt",
            "contentType": "text/plain",
            "data": base64.b64encode(b"0123456789").decode(),
        })
        assert resp.status_code == 201
        assert resp.json()["resourceMeta"]["hash"] == hashlib.md5(b"0123456789").hexdigest()

    def test_invalid_base64_is_400(self, client):
        doc = _document(client)
        resp = client.post("/resources/base64", json={
            "documentId": doc["id"],
            "folderName": "General",
            "name": "a.txt",
            "data": "not base64!",
        })
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "data"


class TestResourceMeta:

    def test_get_meta(self, client):
        doc = _document(client)
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]
        resp = client.get(f"/resources/{meta['id']}")
        assert resp.status_code == 200
        assert resp.json()["name"] == "a.txt"

    def test_missing_meta_is_404(self, client):
        resp = client.get("/resources/nope")
        assert resp.status_code == 404
        assert resp.json()["error"] == "RESOURCE_NOT_FOUND"

    def test_partial_update(self, client):
        doc = _document(client)
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]
        client.put(f"/resources/{meta['id']}", json={"summary": "short", "tags": ["a"]})
        resp = client.put(f"/resources/{meta['id']}", json={"notes": "n"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["notes"] == "n"
        assert data["summary"] == "short"
        assert data["tags"] == ["a"]

    def test_rename_updates_document(self, client):
        doc = _document(client)
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]
        resp = client.put(f"/resources/{meta['id']}/name", json={"name": "evidence.txt"})
        assert resp.json()["name"] == "evidence.txt"
        entry = client.get(f"/documents/{doc['id']}").json()["folders"]["General"]["resources"][0]
        assert entry["name"] == "evidence.txt"

    def test_touch(self, client):
        doc = _document(client)
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]
        assert client.post(f"/resources/{meta['id']}/last-opened", json={"folderName": "General"}).status_code == 200
        assert client.post(f"/resources/{meta['id']}/last-opened").status_code == 200

    def test_touch_unknown_folder_is_404(self, client):
        doc = _document(client)
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]
        resp = client.post(f"/resources/{meta['id']}/last-opened", json={"folderName": "Nope"})
        assert resp.status_code == 404


class TestNotes:

    def test_notes_endpoints(self, client):
        doc = _document(client)
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]

        assert client.get("/resources/notes", params={"id": meta["id"]}).json() == {"notes": ""}
        resp = client.put("/resources/notes", json={"id": meta["id"], "notes": "check page 3"})
        assert resp.json() == {"notes": "check page 3"}
        assert client.get("/resources/notes", params={"id": meta["id"]}).json() == {"notes": "check page 3"}
        resp = client.request("DELETE", "/resources/notes", json={"id": meta["id"]})
        assert resp.json() == {"notes": ""}

    def test_notes_missing_resource(self, client):
        assert client.get("/resources/notes", params={"id": "nope"}).status_code == 404


class TestMove:

    def test_move(self, client):
        doc = _document(client)
        client.post(f"/documents/{doc['id']}/folders", json={"folderName": "Evidence"})
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]

        resp = client.put("/resources/move", json={
            "documentId": doc["id"],
            "resourceId": meta["id"],
            "sourceFolderName": "General",
            "targetFolderName": "Evidence",
        })

        assert resp.json() == {"msg": "success"}
        folders = client.get(f"/documents/{doc['id']}").json()["folders"]
        assert folders["General"]["resources"] == []
        assert [r["id"] for r in folders["Evidence"]["resources"]] == [meta["id"]]

    def test_move_to_missing_folder_is_404(self, client):
        doc = _document(client)
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]
        resp = client.put("/resources/move", json={
            "documentId": doc["id"],
            "resourceId": meta["id"],
            "sourceFolderName": "General",
            "targetFolderName": "Nope",
        })
        assert resp.status_code == 404
        assert resp.json()["error"] == "FOLDER_NOT_FOUND"


class TestDelete:

    def test_delete(self, client):
        doc = _document(client)
        meta = upload_file(client, doc["id"]).json()["resourceMeta"]

        resp = client.delete(f"/resources/{meta['id']}")

        assert resp.json() == {"msg": "success"}
        assert client.get(f"/resources/{meta['id']}").status_code == 404
        assert client.get(f"/documents/{doc['id']}").json()["folders"]["General"]["resources"] == []
        # Shared content stays.
        assert client.get(f"/resources/content/{meta['hash']}").status_code == 200

    def test_delete_missing_is_404(self, client):
        assert client.delete("/resources/nope").status_code == 404
