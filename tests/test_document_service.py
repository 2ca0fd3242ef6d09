"""Unit tests for DocumentService, the deep module owning document lifecycle.

Tests the service layer directly against the in-memory primary store,
bypassing the HTTP stack. Covers CRUD, owner listing and ordering,
versioned updates, the delete cascade and its resume path, folders, tags
and last-opened touches.
"""

import pytest

from curiocity.exceptions import (
    DocumentNotFoundError,
    FolderConflictError,
    FolderNotFoundError,
    TagConflictError,
    TagNotFoundError,
    ValidationError,
    VersionConflictError,
)
from curiocity.schemas.document import DocumentCreate, DocumentPatch
from curiocity.stores import Table


def _make_create(name: str = "Report A", owner_id: str = "u1", **overrides) -> DocumentCreate:
    return DocumentCreate(name=name, ownerID=owner_id, **overrides)


class TestCreateDocument:

    def test_create_has_single_general_folder(self, document_service):
        doc = document_service.create_document(_make_create())
        assert list(doc.folders) == ["General"]
        assert doc.folders["General"].resources == []
        assert doc.version == 1
        assert doc.tags == []

    def test_create_persists_to_primary(self, document_service, primary):
        doc = document_service.create_document(_make_create())
        item = primary.get(doc.id, Table.DOCUMENTS)
        assert item["ownerID"] == "u1"
        assert item["folders"]["General"]["name"] == "General"

    def test_create_keeps_client_date_added(self, document_service):
        doc = document_service.create_document(_make_create(date_added="2024-01-01T00:00:00.000Z"))
        assert doc.date_added == "2024-01-01T00:00:00.000Z"

    def test_ids_are_unique(self, document_service):
        a = document_service.create_document(_make_create())
        b = document_service.create_document(_make_create())
        assert a.id != b.id


class TestListDocuments:

    def test_lists_only_owner_documents(self, document_service):
        document_service.create_document(_make_create(owner_id="u1"))
        document_service.create_document(_make_create(owner_id="u2"))
        docs = document_service.list_documents("u1")
        assert len(docs) == 1
        assert docs[0].owner_id == "u1"

    def test_owner_required(self, document_service):
        with pytest.raises(ValidationError):
            document_service.list_documents("")

    def test_order_by_last_opened_most_recent_first(self, document_service, primary):
        old = document_service.create_document(_make_create(name="old"))
        new = document_service.create_document(_make_create(name="new"))
        never = document_service.create_document(_make_create(name="never"))
        primary.update_fields(old.id, {"lastOpened": "2024-01-01T00:00:00.000Z"}, Table.DOCUMENTS)
        primary.update_fields(new.id, {"lastOpened": "2025-01-01T00:00:00.000Z"}, Table.DOCUMENTS)
        primary.update_fields(never.id, {"lastOpened": ""}, Table.DOCUMENTS)

        names = [d.name for d in document_service.list_documents("u1", order_by="lastOpened")]
        assert names == ["new", "old", "never"]

    def test_unknown_order_rejected(self, document_service):
        with pytest.raises(ValidationError):
            document_service.list_documents("u1", order_by="name")


class TestGetDocument:

    def test_missing_raises(self, document_service):
        with pytest.raises(DocumentNotFoundError):
            document_service.get_document("nope")

    def test_update_last_opened_does_not_bump_version(self, document_service, primary):
        doc = document_service.create_document(_make_create())
        primary.update_fields(doc.id, {"lastOpened": "2000-01-01T00:00:00.000Z"}, Table.DOCUMENTS)
        fetched = document_service.get_document(doc.id, update_last_opened=True)
        assert fetched.last_opened > "2000-01-01T00:00:00.000Z"
        assert primary.get(doc.id, Table.DOCUMENTS)["lastOpened"] == fetched.last_opened
        assert primary.get(doc.id, Table.DOCUMENTS)["version"] == 1


class TestUpdateDocument:

    def test_update_name_bumps_version(self, document_service):
        doc = document_service.create_document(_make_create())
        updated = document_service.update_document(DocumentPatch(id=doc.id, name="Renamed"))
        assert updated.name == "Renamed"
        assert updated.version == 2
        assert updated.updated_at is not None
        assert document_service.get_document(doc.id).name == "Renamed"

    def test_omitted_fields_are_kept(self, document_service):
        doc = document_service.create_document(_make_create(text="body"))
        updated = document_service.update_document(DocumentPatch(id=doc.id, tags=["x"]))
        assert updated.text == "body"
        assert updated.folders.keys() == doc.folders.keys()

    def test_stale_version_rejected(self, document_service):
        doc = document_service.create_document(_make_create())
        document_service.update_document(DocumentPatch(id=doc.id, name="first"))
        with pytest.raises(VersionConflictError):
            document_service.update_document(DocumentPatch(id=doc.id, name="second", version=1))
        assert document_service.get_document(doc.id).name == "first"

    def test_matching_version_accepted(self, document_service):
        doc = document_service.create_document(_make_create())
        updated = document_service.update_document(DocumentPatch(id=doc.id, name="ok", version=1))
        assert updated.version == 2

    def test_missing_document_raises(self, document_service):
        with pytest.raises(DocumentNotFoundError):
            document_service.update_document(DocumentPatch(id="nope", name="x"))

    def test_concurrent_write_detected(self, document_service, primary):
        doc = document_service.create_document(_make_create())
        stale = document_service.get_document(doc.id)
        document_service.add_folder(doc.id, "Evidence")
        with pytest.raises(VersionConflictError):
            document_service.save(stale.model_copy(update={"name": "lost"}), stale)
        assert "Evidence" in document_service.get_document(doc.id).folders

    def test_stale_save_does_not_recreate_deleted_document(self, document_service, resource_service, primary):
        doc = document_service.create_document(_make_create())
        upload = resource_service.upload_resource(b"abc", "a.txt", "text/plain", "General", doc.id)
        stale = document_service.get_document(doc.id)
        document_service.delete_document(doc.id)

        with pytest.raises(VersionConflictError):
            document_service.save(stale.model_copy(update={"name": "edited"}), stale)

        assert primary.get(doc.id, Table.DOCUMENTS) is None
        assert primary.get(upload.resource_meta.id, Table.RESOURCE_META) is None


class TestDeleteDocument:

    def test_delete_removes_document_and_metas(self, document_service, resource_service, primary):
        doc = document_service.create_document(_make_create())
        document_service.add_folder(doc.id, "Evidence")
        a = resource_service.upload_resource(b"aaa", "a.txt", "text/plain", "General", doc.id)
        b = resource_service.upload_resource(b"bbb", "b.txt", "text/plain", "Evidence", doc.id)

        document_service.delete_document(doc.id)

        assert primary.get(doc.id, Table.DOCUMENTS) is None
        assert primary.get(a.resource_meta.id, Table.RESOURCE_META) is None
        assert primary.get(b.resource_meta.id, Table.RESOURCE_META) is None
        # Content rows are shared by hash and survive.
        assert primary.get(a.resource_meta.hash, Table.RESOURCES) is not None

    def test_delete_leaves_other_documents_alone(self, document_service, resource_service, primary):
        doc = document_service.create_document(_make_create())
        other = document_service.create_document(_make_create(name="other"))
        kept = resource_service.upload_resource(b"same", "a.txt", "text/plain", "General", other.id)
        resource_service.upload_resource(b"same", "a.txt", "text/plain", "General", doc.id)

        document_service.delete_document(doc.id)

        assert primary.get(kept.resource_meta.id, Table.RESOURCE_META) is not None
        assert document_service.get_document(other.id).folders["General"].resources[0].id == kept.resource_meta.id

    def test_delete_missing_raises(self, document_service):
        with pytest.raises(DocumentNotFoundError):
            document_service.delete_document("nope")


class TestResumePendingDeletes:

    def _interrupted(self, document_service, resource_service, primary):
        doc = document_service.create_document(_make_create())
        upload = resource_service.upload_resource(b"abc", "a.txt", "text/plain", "General", doc.id)
        item = primary.get(doc.id, Table.DOCUMENTS)
        item["pendingDelete"] = {
            "startedAt": "2024-01-01T00:00:00.000Z",
            "resourceIds": [upload.resource_meta.id],
        }
        primary.put(item, Table.DOCUMENTS)
        return doc, upload

    def test_pending_document_is_hidden(self, document_service, resource_service, primary):
        doc, _ = self._interrupted(document_service, resource_service, primary)
        with pytest.raises(DocumentNotFoundError):
            document_service.get_document(doc.id)
        assert document_service.list_documents("u1") == []

    def test_resume_finishes_cascade(self, document_service, resource_service, primary):
        doc, upload = self._interrupted(document_service, resource_service, primary)
        assert document_service.resume_pending_deletes() == 1
        assert primary.get(doc.id, Table.DOCUMENTS) is None
        assert primary.get(upload.resource_meta.id, Table.RESOURCE_META) is None

    def test_resume_with_nothing_pending(self, document_service):
        document_service.create_document(_make_create())
        assert document_service.resume_pending_deletes() == 0


class TestFolders:

    def test_add_folder(self, document_service):
        doc = document_service.create_document(_make_create())
        updated = document_service.add_folder(doc.id, "Evidence")
        assert list(updated.folders) == ["General", "Evidence"]
        assert updated.folders["Evidence"].name == "Evidence"

    def test_duplicate_folder_leaves_document_unchanged(self, document_service):
        doc = document_service.create_document(_make_create())
        document_service.add_folder(doc.id, "Evidence")
        before = document_service.get_document(doc.id)
        with pytest.raises(FolderConflictError) as exc:
            document_service.add_folder(doc.id, "Evidence")
        assert exc.value.status_code == 400
        after = document_service.get_document(doc.id)
        assert after.folders == before.folders
        assert after.version == before.version

    def test_blank_folder_name_rejected(self, document_service):
        doc = document_service.create_document(_make_create())
        with pytest.raises(ValidationError):
            document_service.add_folder(doc.id, "   ")

    def test_rename_keeps_position_and_resources(self, document_service, resource_service):
        doc = document_service.create_document(_make_create())
        document_service.add_folder(doc.id, "Evidence")
        document_service.add_folder(doc.id, "Notes")
        upload = resource_service.upload_resource(b"x", "a.txt", "text/plain", "Evidence", doc.id)

        renamed = document_service.rename_folder(doc.id, "Evidence", "Exhibits")

        assert list(renamed.folders) == ["General", "Exhibits", "Notes"]
        assert renamed.folders["Exhibits"].name == "Exhibits"
        assert renamed.folders["Exhibits"].resources[0].id == upload.resource_meta.id

    def test_rename_missing_folder_is_bad_request(self, document_service):
        doc = document_service.create_document(_make_create())
        with pytest.raises(FolderNotFoundError) as exc:
            document_service.rename_folder(doc.id, "Missing", "Other")
        assert exc.value.status_code == 400

    def test_rename_onto_existing_folder_rejected(self, document_service):
        doc = document_service.create_document(_make_create())
        document_service.add_folder(doc.id, "Evidence")
        with pytest.raises(FolderConflictError):
            document_service.rename_folder(doc.id, "Evidence", "General")

    def test_delete_folder_removes_its_metas(self, document_service, resource_service, primary):
        doc = document_service.create_document(_make_create())
        document_service.add_folder(doc.id, "Evidence")
        gone = resource_service.upload_resource(b"x", "a.txt", "text/plain", "Evidence", doc.id)
        kept = resource_service.upload_resource(b"y", "b.txt", "text/plain", "General", doc.id)

        updated = document_service.delete_folder(doc.id, "Evidence")

        assert "Evidence" not in updated.folders
        assert primary.get(gone.resource_meta.id, Table.RESOURCE_META) is None
        assert primary.get(kept.resource_meta.id, Table.RESOURCE_META) is not None

    def test_delete_missing_folder_is_bad_request(self, document_service):
        doc = document_service.create_document(_make_create())
        with pytest.raises(FolderNotFoundError) as exc:
            document_service.delete_folder(doc.id, "Missing")
        assert exc.value.status_code == 400

    def test_general_folder_can_be_deleted(self, document_service):
        doc = document_service.create_document(_make_create())
        updated = document_service.delete_folder(doc.id, "General")
        assert updated.folders == {}


class TestTags:

    def test_add_and_delete_tag(self, document_service):
        doc = document_service.create_document(_make_create())
        assert document_service.add_tag(doc.id, "urgent").tags == ["urgent"]
        assert document_service.delete_tag(doc.id, "urgent").tags == []

    def test_duplicate_tag_conflicts(self, document_service):
        doc = document_service.create_document(_make_create())
        document_service.add_tag(doc.id, "urgent")
        with pytest.raises(TagConflictError):
            document_service.add_tag(doc.id, "urgent")
        assert document_service.get_document(doc.id).tags == ["urgent"]

    def test_delete_missing_tag(self, document_service):
        doc = document_service.create_document(_make_create())
        with pytest.raises(TagNotFoundError):
            document_service.delete_tag(doc.id, "nope")


class TestTouchLastOpened:

    def test_touch_never_moves_backwards(self, document_service, primary):
        doc = document_service.create_document(_make_create())
        future = "2999-01-01T00:00:00.000Z"
        primary.update_fields(doc.id, {"lastOpened": future}, Table.DOCUMENTS)
        assert document_service.touch_last_opened(doc.id).last_opened == future

    def test_touch_missing_document(self, document_service):
        with pytest.raises(DocumentNotFoundError):
            document_service.touch_last_opened("nope")
