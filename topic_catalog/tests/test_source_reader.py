import io
import unittest
import zipfile

from topic_catalog.errors import EntryNotFoundError, MalformedContainerError, UnsupportedDocumentError
from topic_catalog.markup_text import WORDPROCESSING_NAMESPACE
from topic_catalog.source_reader import DOCUMENT_BODY_ENTRY, is_supported_source, read_protocol_source


def _document_xml(*paragraphs: str) -> str:
    body = "".join(f"<w:p><w:r><w:t>{text}</w:t></w:r></w:p>" for text in paragraphs)
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<w:document xmlns:w="{WORDPROCESSING_NAMESPACE}"><w:body>{body}</w:body></w:document>'
    )


def _build_docx(files: dict[str, str], compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    stream = io.BytesIO()
    with zipfile.ZipFile(stream, "w", compression) as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        for name, content in files.items():
            archive.writestr(name, content)
    return stream.getvalue()


class TestSourceDispatch(unittest.TestCase):
    def test_plain_text_and_markdown_are_returned_directly(self):
        self.assertEqual(read_protocol_source("notes.txt", "topic a/b".encode("utf-8")), "topic a/b")
        self.assertEqual(read_protocol_source("README.MD", "# Topics\n- a/b".encode("utf-8")), "# Topics\n- a/b")

    def test_plain_text_strips_bom_and_replaces_invalid_bytes(self):
        text = read_protocol_source("notes.txt", b"\xef\xbb\xbfplant/\xfftemp")

        self.assertEqual(text, "plant/�temp")

    def test_docx_returns_paragraph_text_in_order(self):
        data = _build_docx({DOCUMENT_BODY_ENTRY: _document_xml("Telemetry", "plant/line1/temp", "QoS 1")})

        self.assertEqual(read_protocol_source("protocol.docx", data), "Telemetry\nplant/line1/temp\nQoS 1")

    def test_docx_with_stored_body_entry(self):
        data = _build_docx({DOCUMENT_BODY_ENTRY: _document_xml("stored")}, compression=zipfile.ZIP_STORED)

        self.assertEqual(read_protocol_source("Protocol.DOCX", data), "stored")

    def test_docx_without_body_entry_fails(self):
        data = _build_docx({"word/styles.xml": "<styles/>"})

        with self.assertRaises(EntryNotFoundError) as ctx:
            read_protocol_source("protocol.docx", data)

        self.assertIn("entry not found", str(ctx.exception))

    def test_docx_that_is_not_a_container_fails(self):
        with self.assertRaises(MalformedContainerError):
            read_protocol_source("protocol.docx", b"plain bytes pretending to be a docx file")

    def test_legacy_doc_routes_through_heuristic_decoder(self):
        text = "Topic plant/line1/pressure publishes every second"

        self.assertEqual(read_protocol_source("legacy.doc", text.encode("utf-16-le")), text)

    def test_unsupported_extension_rejected_before_parsing(self):
        for filename in ("protocol.pdf", "protocol", "protocol.docx.bak"):
            with self.subTest(filename=filename):
                with self.assertRaises(UnsupportedDocumentError) as ctx:
                    read_protocol_source(filename, b"\x00\x01")
                self.assertIn("Unsupported document type", str(ctx.exception))

    def test_is_supported_source(self):
        self.assertTrue(is_supported_source("a.docx"))
        self.assertTrue(is_supported_source("a.DOC"))
        self.assertFalse(is_supported_source("a.pdf"))
        self.assertFalse(is_supported_source("md"))

    def test_bare_extension_filenames_are_accepted(self):
        self.assertTrue(is_supported_source(".md"))
        self.assertTrue(is_supported_source("uploads/.TXT"))
        self.assertEqual(read_protocol_source(".md", b"# plant/temp"), "# plant/temp")


if __name__ == "__main__":
    unittest.main()
