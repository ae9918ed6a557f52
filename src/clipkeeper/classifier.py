"""Content type detection for copied text.

Detection walks an ordered table of independent matchers and stops at the
first hit, so a string that is both a valid hex color and, say, a comment
line is always a color. Nothing in here raises: anything unrecognized is Text.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from clipkeeper.config import PREVIEW_LENGTH
from clipkeeper.models import ContentType
from clipkeeper.utils import compute_hash, generate_preview

HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}){1,2}|#(?:[0-9a-fA-F]{4}){1,2}")
RGB_COLOR = re.compile(
    r"rgba?\s*\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*(?:,\s*[\d.]+\s*)?\)",
    re.IGNORECASE,
)
URL = re.compile(r"https?://[\w\-]+(?:\.[\w\-]+)+[/#?]?.*", re.IGNORECASE)
EMAIL = re.compile(r"[\w.\-]+@[\w.\-]+\.\w{2,}", re.IGNORECASE)

# Line-anchored keywords and openers of common languages and markup.
CODE_CONSTRUCT = re.compile(
    r"^(?:\{|\[|function\s|public\s+(?:class|interface|enum|struct|record)|private\s+(?:class|interface)"
    r"|protected\s+|internal\s+|def\s+\w+\s*\(|import\s+|from\s+\w+\s+import|const\s+\w+\s*="
    r"|let\s+\w+\s*=|var\s+\w+\s*=|export\s+(?:default\s+)?(?:function|class|const|let)"
    r"|interface\s+\w+|namespace\s+|using\s+\w+|#include\s*<|<!DOCTYPE|<\?xml|<\?php|package\s+\w+"
    r"|@interface\s+|class\s+\w+\s*(?:\(|:)|struct\s+\w+|enum\s+\w+|fn\s+\w+|impl\s+|trait\s+|module\s+)",
    re.MULTILINE,
)
# Operators and tokens that rarely show up in prose.
CODE_INDICATOR = re.compile(r"=>|->|\$\{|\{\{|</\w+>|/>|===|!==|&&|\|\||::\w+|@\w+\(")

COMMENT_PREFIXES = ("//", "/*", "*", "#")
CODE_LINE_RATIO = 0.3


@dataclass
class ContentAnalysis:
    content_type: ContentType
    color_hex: str | None
    preview: str
    content_hash: str


def _single_line(pattern: re.Pattern) -> Callable[[str], bool]:
    def matcher(text: str) -> bool:
        return "\n" not in text and pattern.fullmatch(text) is not None

    return matcher


def _is_code(text: str) -> bool:
    return CODE_CONSTRUCT.search(text) is not None or CODE_INDICATOR.search(text) is not None


def looks_like_code(text: str) -> bool:
    lines = text.split("\n")
    if len(lines) < 2:
        return False

    indicators = 0
    for line in lines:
        trimmed = line.strip()
        if trimmed.endswith((";", "{", "}")):
            indicators += 1
        if line.startswith(("    ", "\t")) and trimmed:
            indicators += 1
        if trimmed.startswith(COMMENT_PREFIXES):
            indicators += 1

    return indicators > len(lines) * CODE_LINE_RATIO


MATCHERS: list[tuple[str, Callable[[str], bool], ContentType]] = [
    ("hex_color", lambda text: HEX_COLOR.fullmatch(text) is not None, ContentType.COLOR),
    ("rgb_color", lambda text: RGB_COLOR.fullmatch(text) is not None, ContentType.COLOR),
    ("url", _single_line(URL), ContentType.URL),
    ("email", _single_line(EMAIL), ContentType.EMAIL),
    ("code_pattern", _is_code, ContentType.CODE),
    ("code_structure", looks_like_code, ContentType.CODE),
]


def detect_type(text: str) -> ContentType:
    if not text or not text.strip():
        return ContentType.TEXT

    text = text.strip()
    for _name, matches, content_type in MATCHERS:
        if matches(text):
            return content_type
    return ContentType.TEXT


def extract_color_hex(text: str) -> str | None:
    match = HEX_COLOR.fullmatch(text.strip())
    return match.group(0).upper() if match else None


def analyze_text(text: str, preview_length: int = PREVIEW_LENGTH) -> ContentAnalysis:
    """Classify text and derive everything stored alongside it."""
    content_type = detect_type(text)
    color_hex = extract_color_hex(text) if content_type == ContentType.COLOR else None
    return ContentAnalysis(
        content_type=content_type,
        color_hex=color_hex,
        preview=generate_preview(text, preview_length),
        content_hash=compute_hash(text),
    )
