from __future__ import annotations

from xml.etree import ElementTree as ET

from topic_catalog.errors import MarkupParseError

WORDPROCESSING_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
PARAGRAPH_TAG = f"{{{WORDPROCESSING_NAMESPACE}}}p"
RUN_TEXT_TAG = f"{{{WORDPROCESSING_NAMESPACE}}}t"


def extract_paragraph_text(xml_text: str) -> str:
    """Flatten a WordprocessingML body into newline-separated paragraph text.

    Run text belongs to its innermost enclosing paragraph, so paragraphs nested
    in text boxes are emitted once, in the order they open in the document.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise MarkupParseError(f"Markup parse error: {exc}") from exc

    paragraphs: list[list[str]] = []

    def _walk(element: ET.Element, current: list[str] | None) -> None:
        if element.tag == PARAGRAPH_TAG:
            current = []
            paragraphs.append(current)
        elif element.tag == RUN_TEXT_TAG and current is not None:
            current.append(element.text or "")
        for child in element:
            _walk(child, current)

    _walk(root, None)

    lines = ["".join(parts).strip() for parts in paragraphs]
    return "\n".join(line for line in lines if line).strip()
