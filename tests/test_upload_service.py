import io

import pytest
from starlette.datastructures import Headers, UploadFile

from sitechat.core.exceptions import UploadRejected
from sitechat.services import upload_service


def make_upload(name, content=b"hello", content_type="text/plain"):
    return UploadFile(
        file=io.BytesIO(content),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


def stored_files(upload_dir):
    chat_dir = upload_dir / "chat"
    return sorted(p.name for p in chat_dir.iterdir()) if chat_dir.exists() else []


@pytest.mark.parametrize("name,mime", [
    ("photo.JPG", "image/jpeg"),
    ("scan.png", "image/png"),
    ("doc.pdf", "application/pdf"),
    ("brief.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
    ("notes.txt", "text/plain; charset=utf-8"),
])
def test_allowed_types(name, mime):
    assert upload_service.is_allowed(name, mime)


@pytest.mark.parametrize("name,mime", [
    ("tool.exe", "application/x-msdownload"),
    ("photo.png", "image/gif"),
    ("notes.txt", "text/html"),
    ("noext", "text/plain"),
    ("image.gif", "image/gif"),
])
def test_rejected_types(name, mime):
    assert not upload_service.is_allowed(name, mime)


def test_save_upload_writes_bytes_under_chat_dir(upload_dir):
    stored = upload_service.save_upload(make_upload("Notiz.TXT", b"abc"))

    assert stored.original_name == "Notiz.TXT"
    assert stored.mime_type == "text/plain"
    assert stored.size_bytes == 3
    assert stored.storage_path.startswith("chat/")
    assert stored.storage_path.endswith(".txt")
    assert (upload_dir / stored.storage_path).read_bytes() == b"abc"


def test_oversized_upload_leaves_no_file(upload_dir, monkeypatch):
    monkeypatch.setattr(upload_service, "MAX_FILE_SIZE", 10)

    with pytest.raises(UploadRejected):
        upload_service.save_upload(make_upload("big.txt", b"x" * 11))

    assert stored_files(upload_dir) == []


def test_rejected_file_in_batch_removes_earlier_files(upload_dir):
    files = [
        make_upload("ok.txt"),
        make_upload("bad.exe", b"MZ", "application/x-msdownload"),
    ]

    with pytest.raises(UploadRejected):
        upload_service.save_uploads(files)

    assert stored_files(upload_dir) == []


def test_more_than_three_files_rejected_before_writing(upload_dir):
    files = [make_upload(f"f{i}.txt") for i in range(4)]

    with pytest.raises(UploadRejected):
        upload_service.save_uploads(files)

    assert stored_files(upload_dir) == []


def test_empty_file_parts_are_ignored():
    assert upload_service.save_uploads([make_upload(""), None]) == []


def test_remove_tolerates_missing_files(upload_dir):
    stored = upload_service.save_upload(make_upload("a.txt"))
    upload_service.remove_stored_files([stored])
    upload_service.remove_stored_files([stored])
    upload_service.remove_storage_paths(["chat/does-not-exist.txt"])

    assert stored_files(upload_dir) == []
