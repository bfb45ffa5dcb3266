# markdown_render.py - Markdown to sanitised HTML for wiki and news content
"""
Content is authored as markdown and rendered at read time. Headings get
anchor ids built from their text: lowercase, runs of non-word characters
replaced by ``-``, and a ``-1``, ``-2``, ... suffix when the id was already
used earlier in the same document. Headings with no word characters use
``section`` as the base.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Set

import bleach
import markdown
from markdown.extensions import Extension
from markdown.extensions.tables import TableExtension
from markdown.treeprocessors import Treeprocessor

logger = logging.getLogger("vice-city.markdown")

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
TOC_LEVELS = 3

ALLOWED_TAGS = [
    "p", "br", "strong", "em", "del", "code", "pre", "blockquote", "hr",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "a", "img",
    "table", "thead", "tbody", "tr", "th", "td",
]
ALLOWED_ATTRIBUTES = {
    **{tag: ["id"] for tag in HEADING_TAGS},
    "a": ["href", "title", "rel"],
    "img": ["src", "alt", "title"],
    "code": ["class"],
    "th": ["align"],
    "td": ["align"],
}
ALLOWED_PROTOCOLS = ["http", "https", "mailto"]

_NON_WORD = re.compile(r"[^\w]+")


def heading_id(text: str, used: Set[str]) -> str:
    """Slugify heading text and make it unique within ``used`` (which is updated)."""
    base = _NON_WORD.sub("-", text.lower())
    if not base.strip("-"):
        base = "section"
    candidate, n = base, 0
    while candidate in used:
        n += 1
        candidate = f"{base}-{n}"
    used.add(candidate)
    return candidate


@dataclass
class TocEntry:
    level: int
    text: str
    id: str


@dataclass
class RenderedMarkdown:
    html: str
    toc: List[TocEntry] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "html": self.html,
            "toc": [{"level": e.level, "text": e.text, "id": e.id} for e in self.toc],
        }


class HeadingIdProcessor(Treeprocessor):
    """Assigns de-duplicated ids to headings and collects the table of contents."""

    def __init__(self, md, toc: List[TocEntry]):
        super().__init__(md)
        self.toc = toc

    def run(self, root):
        used: Set[str] = set()
        for element in root.iter():
            if element.tag not in HEADING_TAGS:
                continue
            text = "".join(element.itertext()).strip()
            element.set("id", heading_id(text, used))
            level = int(element.tag[1])
            if level <= TOC_LEVELS:
                self.toc.append(TocEntry(level=level, text=text, id=element.get("id")))


class HeadingIdExtension(Extension):
    def __init__(self, toc: List[TocEntry], **kwargs):
        self.toc = toc
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        # after inline processing so heading text is final
        md.treeprocessors.register(HeadingIdProcessor(md, self.toc), "heading_ids", 5)


def sanitize_html(html: str) -> str:
    return bleach.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )


def render_markdown(text: str) -> RenderedMarkdown:
    """Render markdown to sanitised HTML plus an h1-h3 table of contents."""
    if not text or not text.strip():
        return RenderedMarkdown(html="")

    toc: List[TocEntry] = []
    engine = markdown.Markdown(
        extensions=[
            "markdown.extensions.fenced_code",
            TableExtension(use_align_attribute=True),
            HeadingIdExtension(toc),
        ]
    )
    html = engine.convert(text)
    return RenderedMarkdown(html=sanitize_html(html), toc=toc)
