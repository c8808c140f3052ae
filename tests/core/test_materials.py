"""Tests for material upload and deletion."""

from unittest.mock import MagicMock

import pytest

from studyhub.core.materials import (
    MaterialNotFoundError,
    MaterialRejectedError,
    UploadFile,
    delete_material,
    infer_material_type,
    list_materials,
    storage_path,
    upload_materials,
)
from studyhub.db.materials_repository import get_material
from studyhub.storage.object_storage import ObjectNotFoundError


def _pdf(name: str = "notes.pdf", size: int = 100) -> UploadFile:
    return UploadFile(filename=name, content_type="application/pdf", data=b"%" * size)


class TestHelpers:
    @pytest.mark.parametrize(
        "content_type,expected",
        [
            ("application/pdf", "pdf"),
            ("video/mp4", "video"),
            ("audio/wav", "audio"),
            ("text/plain; charset=utf-8", "document"),
            ("application/zip", "document"),
        ],
    )
    def test_infer_material_type(self, content_type, expected):
        assert infer_material_type(content_type) == expected

    def test_storage_path(self):
        path = storage_path("uid-1", "../Week 1.pdf", now_ms=1700000000000)

        assert path == "users/uid-1/materials/1700000000000_Week 1.pdf"


class TestUploadMaterials:
    def test_accepted_upload_creates_object_and_document(self, store, storage):
        report = upload_materials(store, storage, "uid-1", [_pdf()])

        assert report.uploaded_count == 1
        assert report.total == 1
        result = report.results[0]
        assert result.status == "uploaded"

        material = result.material
        assert material.type == "pdf"
        assert material.topic == "General"
        assert material.uploader_uid == "uid-1"
        assert material.file_path.startswith("users/uid-1/materials/")
        assert material.file_path.endswith("_notes.pdf")
        assert storage.download(material.file_path) == b"%" * 100
        assert get_material(store, material.id) is not None

    def test_explicit_type_and_topic(self, store, storage):
        report = upload_materials(
            store, storage, "uid-1", [_pdf()], material_type="document", topic="Biology"
        )

        assert report.results[0].material.type == "document"
        assert report.results[0].material.topic == "Biology"

    def test_rejected_type_and_size(self, store, storage):
        files = [
            UploadFile(filename="virus.exe", content_type="application/x-msdownload", data=b"MZ"),
            _pdf("big.pdf", size=2048),
            _pdf("ok.pdf"),
        ]

        report = upload_materials(store, storage, "uid-1", files, max_bytes=1024)

        assert [r.status for r in report.results] == ["rejected", "rejected", "uploaded"]
        assert "not accepted" in report.results[0].error

    def test_unknown_material_type(self, store, storage):
        with pytest.raises(MaterialRejectedError, match="Unknown material type"):
            upload_materials(store, storage, "uid-1", [_pdf()], material_type="banana")

        assert list_materials(store, "uid-1") == []
        assert not any(storage.root.rglob("*.pdf"))
        assert report.uploaded_count == 1
        assert len(list_materials(store, "uid-1")) == 1

    def test_failure_does_not_stop_loop(self, store):
        failing_storage = MagicMock()
        failing_storage.upload.side_effect = [RuntimeError("bucket unavailable"), "file:///ok"]

        report = upload_materials(store, failing_storage, "uid-1", [_pdf("a.pdf"), _pdf("b.pdf")])

        assert [r.status for r in report.results] == ["failed", "uploaded"]
        assert "bucket unavailable" in report.results[0].error
        assert report.to_dict()["uploaded"] == 1
        assert report.to_dict()["total"] == 2

    def test_files_processed_in_order(self, store, storage):
        names = ["first.pdf", "second.pdf", "third.pdf"]
        report = upload_materials(store, storage, "uid-1", [_pdf(n) for n in names])

        assert [r.filename for r in report.results] == names


class TestListAndDelete:
    def test_list_only_own_materials(self, store, storage):
        upload_materials(store, storage, "uid-1", [_pdf("mine.pdf")])
        upload_materials(store, storage, "uid-2", [_pdf("theirs.pdf")])

        assert [m.name for m in list_materials(store, "uid-1")] == ["mine.pdf"]

    def test_delete_removes_object_and_document(self, store, storage):
        material = upload_materials(store, storage, "uid-1", [_pdf()]).results[0].material

        delete_material(store, storage, "uid-1", material.id)

        assert get_material(store, material.id) is None
        with pytest.raises(ObjectNotFoundError):
            storage.download(material.file_path)

    def test_delete_other_users_material(self, store, storage):
        material = upload_materials(store, storage, "uid-1", [_pdf()]).results[0].material

        with pytest.raises(MaterialNotFoundError):
            delete_material(store, storage, "uid-2", material.id)

        assert get_material(store, material.id) is not None

    def test_delete_missing(self, store, storage):
        with pytest.raises(MaterialNotFoundError):
            delete_material(store, storage, "uid-1", "nope")

    def test_storage_failure_is_swallowed(self, store, storage):
        material = upload_materials(store, storage, "uid-1", [_pdf()]).results[0].material
        broken_storage = MagicMock()
        broken_storage.delete.side_effect = RuntimeError("permission denied")

        delete_material(store, broken_storage, "uid-1", material.id)

        broken_storage.delete.assert_called_once_with(material.file_path)
        assert get_material(store, material.id) is None
