import unittest

from topic_catalog.errors import MalformedContainerError, MarkupParseError
from topic_catalog.markup_text import WORDPROCESSING_NAMESPACE, extract_paragraph_text


def _document(body: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<w:document xmlns:w="{WORDPROCESSING_NAMESPACE}"><w:body>{body}</w:body></w:document>'
    )


class TestMarkupTextExtraction(unittest.TestCase):
    def test_joins_runs_and_paragraphs_in_document_order(self):
        xml = _document(
            "<w:p><w:r><w:t>Topic </w:t></w:r><w:r><w:t>catalog</w:t></w:r></w:p>"
            "<w:p><w:r><w:t>  plant/line1/temp  </w:t></w:r></w:p>"
            "<w:p><w:r><w:t>QoS 1</w:t></w:r></w:p>"
        )

        self.assertEqual(extract_paragraph_text(xml), "Topic catalog\nplant/line1/temp\nQoS 1")

    def test_drops_empty_and_whitespace_paragraphs(self):
        xml = _document(
            "<w:p/>"
            "<w:p><w:r><w:t>First</w:t></w:r></w:p>"
            "<w:p><w:r><w:t>   </w:t></w:r></w:p>"
            "<w:p><w:pPr/></w:p>"
            "<w:p><w:r><w:t>Second</w:t></w:r></w:p>"
        )

        self.assertEqual(extract_paragraph_text(xml), "First\nSecond")

    def test_ignores_text_outside_run_text_elements(self):
        xml = _document(
            "<w:p><w:r><w:instrText>HYPERLINK</w:instrText><w:t>Visible</w:t></w:r></w:p>"
        )

        self.assertEqual(extract_paragraph_text(xml), "Visible")

    def test_nested_paragraph_text_is_not_duplicated(self):
        xml = _document(
            "<w:p><w:r><w:t>Outer</w:t></w:r>"
            "<w:r><w:pict><w:txbxContent><w:p><w:r><w:t>Inner</w:t></w:r></w:p></w:txbxContent></w:pict></w:r>"
            "<w:r><w:t> tail</w:t></w:r></w:p>"
            "<w:p><w:r><w:t>After</w:t></w:r></w:p>"
        )

        self.assertEqual(extract_paragraph_text(xml), "Outer tail\nInner\nAfter")

    def test_accepts_any_prefix_bound_to_the_wordprocessing_namespace(self):
        xml = (
            f'<doc xmlns="{WORDPROCESSING_NAMESPACE}"><body><p><r><t>default</t></r></p>'
            f'<x:p xmlns:x="{WORDPROCESSING_NAMESPACE}"><x:r><x:t>aliased</x:t></x:r></x:p></body></doc>'
        )

        self.assertEqual(extract_paragraph_text(xml), "default\naliased")

    def test_ignores_math_and_drawing_text(self):
        xml = _document(
            '<w:p xmlns:m="http://schemas.openxmlformats.org/officeDocument/2006/math" '
            'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main">'
            "<w:r><w:t>Formula:</w:t></w:r>"
            "<m:oMath><m:r><m:t>x+1</m:t></m:r></m:oMath>"
            "<a:p><a:r><a:t>shape label</a:t></a:r></a:p>"
            "</w:p>"
        )

        self.assertEqual(extract_paragraph_text(xml), "Formula:")

    def test_unqualified_markup_yields_no_text(self):
        xml = "<document><body><p><r><t>plain</t></r></p></body></document>"

        self.assertEqual(extract_paragraph_text(xml), "")

    def test_document_without_paragraphs_yields_empty_text(self):
        self.assertEqual(extract_paragraph_text(_document("")), "")

    def test_parse_error_fails_fast(self):
        with self.assertRaises(MarkupParseError) as ctx:
            extract_paragraph_text("<w:document><w:body><w:p>")

        self.assertIn("Markup parse error", str(ctx.exception))
        self.assertIsInstance(ctx.exception, MalformedContainerError)


if __name__ == "__main__":
    unittest.main()
