"""Text cleanup helpers shared by the feed reader and the scraper."""

import html
import re

UNTITLED = "Untitled"

_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

# XML 1.0 forbids these even inside CDATA
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_DOUBLE_ENCODED = re.compile(r"&amp;(amp|lt|gt|quot|apos);")
# A bare "&" followed by 20+ chars without ";" cannot be an entity reference
_BARE_AMPERSAND = re.compile(r"&(?!#?\w{1,19};)([^;]{20,})")
_ENCODING_DECL = re.compile(r"""(<\?xml[^>]*?encoding=)(["'])[^"']*\2""", re.IGNORECASE)
_CDATA_OPEN = "<![CDATA["
_CDATA_CLOSE = "]]>"
_OPEN_TAG_AT_END = re.compile(r"<([A-Za-z_][\w:.-]*)[^>]*>\s*$")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def clean_text(text: str) -> str:
    """Strip HTML tags and entities, then collapse whitespace."""
    if not text:
        return ""
    text = _TAG.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    return collapse_whitespace(text)


def sanitize_url(url: str) -> str:
    """Trim a URL and drop any whitespace inside it."""
    return _WHITESPACE.sub("", url.strip())


def _close_cdata(xml: str) -> str:
    """Terminate CDATA sections that were opened but never closed."""
    if _CDATA_OPEN not in xml:
        return xml

    head, *sections = xml.split(_CDATA_OPEN)
    fixed = [head]
    for section in sections:
        if _CDATA_CLOSE not in section:
            # Close it right before the end tag of the element that holds it
            holder = _OPEN_TAG_AT_END.search(fixed[-1])
            end = section.find(f"</{holder.group(1)}") if holder else -1
            if end == -1:
                end = section.find("</")
            if end == -1:
                section = section + _CDATA_CLOSE
            else:
                section = section[:end] + _CDATA_CLOSE + section[end:]
        fixed.append(section)
    return _CDATA_OPEN.join(fixed)


def sanitize_xml(xml: str) -> str:
    """
    Repair the most common ways real-world feeds break XML.

    Strips the BOM and control characters, collapses double-encoded entities
    (``&amp;amp;`` -> ``&amp;``), escapes bare ampersands, closes unterminated
    CDATA sections and forces a UTF-8 encoding declaration.
    """
    if not xml:
        return ""
    xml = xml.lstrip("\ufeff")
    xml = _CONTROL_CHARS.sub("", xml)
    xml = _DOUBLE_ENCODED.sub(r"&\1;", xml)
    xml = _BARE_AMPERSAND.sub(r"&amp;\1", xml)
    xml = _close_cdata(xml)
    xml = _ENCODING_DECL.sub(r"\1\2UTF-8\2", xml, count=1)
    return xml
