"""
Tests for the extraction orchestrator.

Recognition adapters and completion collaborators are MagicMocks; PDF
and DOCX readers are patched where real documents are not needed.
"""

from unittest.mock import MagicMock, patch

import pytest

from Extraction.pipeline import (
    extract_text_from_docx,
    extract_text_from_image,
    extract_text_from_pdf,
    process_file,
    process_file_content,
    structure_text,
)
from Extraction.prompts import (
    DOCX_READ_FAILED_MESSAGE,
    EXTRACTION_FAILED_MESSAGE,
    NO_TEXT_FOUND_MESSAGE,
    OCR_RESULT_PREFIX,
    PDF_READ_FAILED_MESSAGE,
)
from Extraction.utils import ExtractionFileError, ExtractionSecurityError

PAGE_ONE = "الصفحة الأولى من الحكم الصادر في الدعوى المدنية رقم ١٢٣"
PAGE_TWO = "الصفحة الثانية وفيها منطوق الحكم والأسباب التي بني عليها"


def _make_adapter(*texts):
    adapter = MagicMock()
    adapter.recognize.side_effect = list(texts)
    return adapter


def _make_completion(result):
    completion = MagicMock()
    completion.complete.return_value = result
    return completion


class TestExtractTextFromImage:
    def test_prefixes_recognized_text(self):
        result = extract_text_from_image(b"img", adapter=_make_adapter("نص الصورة"), completion=None)
        assert result == f"{OCR_RESULT_PREFIX}نص الصورة"

    def test_applies_correction(self):
        completion = _make_completion("النص المصحح")
        result = extract_text_from_image(
            b"img", adapter=_make_adapter("النص المستخرج"), completion=completion
        )
        assert result == f"{OCR_RESULT_PREFIX}النص المصحح"

    @pytest.mark.parametrize("sentinel", [NO_TEXT_FOUND_MESSAGE, EXTRACTION_FAILED_MESSAGE])
    def test_sentinels_returned_as_is(self, sentinel):
        completion = _make_completion("should not be used")
        result = extract_text_from_image(b"img", adapter=_make_adapter(sentinel), completion=completion)
        assert result == sentinel
        completion.complete.assert_not_called()

    def test_uses_shared_completion_by_default(self):
        with patch("Extraction.pipeline.get_completion", return_value=None) as mock_get:
            result = extract_text_from_image(b"img", adapter=_make_adapter("نص"))
        mock_get.assert_called_once()
        assert result.endswith("نص")


class TestExtractTextFromPdf:
    def test_single_page_not_merged(self):
        completion = _make_completion("merged")
        with patch("Extraction.pipeline.read_pdf_pages", return_value=[PAGE_ONE]):
            result = extract_text_from_pdf(b"%PDF", completion=completion)
        assert result == PAGE_ONE
        completion.complete.assert_not_called()

    def test_multi_page_merged(self):
        completion = _make_completion("النص المدموج")
        with patch("Extraction.pipeline.read_pdf_pages", return_value=[PAGE_ONE, PAGE_TWO]):
            result = extract_text_from_pdf(b"%PDF", completion=completion)
        assert result == "النص المدموج"

    def test_multi_page_without_collaborator(self):
        with patch("Extraction.pipeline.read_pdf_pages", return_value=[PAGE_ONE, PAGE_TWO]):
            result = extract_text_from_pdf(b"%PDF", completion=None)
        assert result == f"{PAGE_ONE}\n\n{PAGE_TWO}"

    def test_scanned_pdf_uses_ocr(self):
        adapter = _make_adapter("نص الصفحة الممسوحة", NO_TEXT_FOUND_MESSAGE)
        with patch("Extraction.pipeline.read_pdf_pages", return_value=["", "  "]), patch(
            "Extraction.pipeline.render_pdf_pages", return_value=[b"p1", b"p2"]
        ):
            result = extract_text_from_pdf(b"%PDF", adapter=adapter, completion=None)

        assert result == "نص الصفحة الممسوحة"
        assert adapter.recognize.call_count == 2

    def test_single_scanned_page_corrected(self):
        adapter = _make_adapter("نص الصفحة الممسوحه")
        completion = _make_completion("نص الصفحة الممسوحة")
        with patch("Extraction.pipeline.read_pdf_pages", return_value=[""]), patch(
            "Extraction.pipeline.render_pdf_pages", return_value=[b"p1"]
        ):
            result = extract_text_from_pdf(b"%PDF", adapter=adapter, completion=completion)

        assert result == "نص الصفحة الممسوحة"
        completion.complete.assert_called_once()
        assert "نص الصفحة الممسوحه" in completion.complete.call_args[0][1]

    def test_text_layer_pdf_not_corrected(self):
        completion = _make_completion("should not be used")
        with patch("Extraction.pipeline.read_pdf_pages", return_value=[PAGE_ONE]), patch(
            "Extraction.pipeline.render_pdf_pages"
        ) as mock_render:
            result = extract_text_from_pdf(b"%PDF", completion=completion)

        assert result == PAGE_ONE
        mock_render.assert_not_called()
        completion.complete.assert_not_called()

    def test_unreadable_pdf_raises(self):
        with pytest.raises(ExtractionFileError) as exc_info:
            extract_text_from_pdf(b"not a pdf", completion=None)
        assert str(exc_info.value) == PDF_READ_FAILED_MESSAGE


class TestExtractTextFromDocx:
    def test_unreadable_docx_raises(self):
        with pytest.raises(ExtractionFileError) as exc_info:
            extract_text_from_docx(b"not a docx")
        assert str(exc_info.value) == DOCX_READ_FAILED_MESSAGE

    def test_returns_reader_text(self):
        with patch("Extraction.pipeline.read_docx_text", return_value="محتوى الملف"):
            assert extract_text_from_docx(b"PK") == "محتوى الملف"


class TestProcessFileContent:
    def test_plain_text(self):
        data = "ملاحظات".encode("utf-8")
        assert process_file_content(data, "text/plain", "notes.txt", completion=None) == "ملاحظات"

    def test_markdown(self):
        data = "# عنوان".encode("utf-8")
        assert process_file_content(data, "text/markdown", "a.md", completion=None) == "# عنوان"

    def test_unsupported_type(self):
        result = process_file_content(b"...", "application/zip", "archive.zip", completion=None)
        assert result == "[ملف: archive.zip] - نوع الملف غير مدعوم للقراءة التلقائية"

    def test_image_dispatch(self):
        with patch("Extraction.pipeline.extract_text_from_image", return_value="ok") as mock_image:
            assert process_file_content(b"img", "image/png", "scan.png", completion=None) == "ok"
        mock_image.assert_called_once()

    def test_pdf_dispatch(self):
        with patch("Extraction.pipeline.extract_text_from_pdf", return_value="pdf") as mock_pdf:
            assert process_file_content(b"%PDF", "application/pdf", "a.pdf", completion=None) == "pdf"
        mock_pdf.assert_called_once()

    @pytest.mark.parametrize(
        "mime_type",
        [
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/msword",
        ],
    )
    def test_docx_dispatch(self, mime_type):
        with patch("Extraction.pipeline.extract_text_from_docx", return_value="docx"):
            assert process_file_content(b"PK", mime_type, "a.docx", completion=None) == "docx"


class TestProcessFile:
    def test_reads_text_file(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("نص من ملف", encoding="utf-8")
        assert process_file(path, completion=None) == "نص من ملف"

    def test_rejects_traversal(self):
        with pytest.raises(ExtractionSecurityError):
            process_file("../secret.txt", completion=None)

    def test_rejects_missing_file(self, tmp_path):
        with pytest.raises(ExtractionFileError):
            process_file(tmp_path / "missing.pdf", completion=None)


class TestStructureText:
    def test_without_collaborator(self):
        document = structure_text("نص", completion=None)
        assert document.sections[0].title == "المحتوى"
