"""
Tests for file validation and upload helpers.
"""

import pytest

from Extraction import config
from Extraction.utils import (
    ExtractionFileError,
    ExtractionSecurityError,
    guess_mime_type,
    read_upload,
    sanitize_path,
    validate_file,
)


class TestSanitizePath:
    def test_traversal_rejected(self):
        with pytest.raises(ExtractionSecurityError):
            sanitize_path("docs/../../etc/passwd")

    def test_symlink_rejected(self, tmp_path):
        target = tmp_path / "real.txt"
        target.write_text("x")
        link = tmp_path / "link.txt"
        link.symlink_to(target)
        with pytest.raises(ExtractionSecurityError):
            sanitize_path(link)

    def test_directory_rejected(self, tmp_path):
        with pytest.raises(ExtractionFileError):
            sanitize_path(tmp_path)

    def test_existing_file(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("x")
        assert sanitize_path(path) == path.resolve()


class TestValidateFile:
    def test_bad_extension(self, tmp_path):
        path = tmp_path / "a.exe"
        path.write_bytes(b"MZ")
        with pytest.raises(ExtractionFileError):
            validate_file(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "a.png"
        path.write_bytes(b"")
        with pytest.raises(ExtractionFileError):
            validate_file(path)

    def test_too_large(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "MAX_FILE_SIZE_MB", 0.000001)
        path = tmp_path / "a.pdf"
        path.write_bytes(b"%PDF" * 10)
        with pytest.raises(ExtractionFileError):
            validate_file(path)


class TestGuessMimeType:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("scan.png", "image/png"),
            ("scan.JPG", "image/jpeg"),
            ("report.pdf", "application/pdf"),
            ("notes.md", "text/markdown"),
            ("notes.txt", "text/plain"),
            (
                "brief.docx",
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            ),
            ("blob", "application/octet-stream"),
        ],
    )
    def test_known_types(self, name, expected):
        assert guess_mime_type(name) == expected


class TestReadUpload:
    def test_returns_bytes_mime_and_name(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_bytes(b"hello")
        assert read_upload(path) == (b"hello", "text/plain", "notes.txt")
