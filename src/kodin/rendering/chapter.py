import re
from typing import Any
from urllib.parse import urlsplit
from xml.etree.ElementTree import Element

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from pygments.formatters import HtmlFormatter

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite"]

PYGMENTS_STYLE = "monokai"

EXTENSION_CONFIGS = {
    "codehilite": {
        "css_class": "highlight",
        "guess_lang": False,
        "pygments_style": PYGMENTS_STYLE,
    },
}

SAFE_URL_SCHEMES: frozenset[str] = frozenset({"http", "https", "mailto"})

URL_ATTRIBUTES: tuple[str, ...] = ("href", "src")

IGNORED_URL_CHARACTERS = re.compile(r"[\x00-\x20]")


def is_safe_url(url: str) -> bool:
    """Relative URLs, anchors and http(s)/mailto links are safe. Browsers ignore control characters and spaces in a scheme."""

    scheme: str = urlsplit(IGNORED_URL_CHARACTERS.sub("", url)).scheme.lower()
    return not scheme or scheme in SAFE_URL_SCHEMES


class UnsafeUrlTreeprocessor(Treeprocessor):
    def run(self, root: Element) -> None:
        for element in root.iter():
            for attribute in URL_ATTRIBUTES:
                if (url := element.get(attribute)) is not None and not is_safe_url(url):
                    del element.attrib[attribute]


class EscapeHtmlExtension(Extension):
    """Render raw HTML written in the markdown as text and drop links with script schemes."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")
        # Runs after every other tree processor so hrefs are final.
        md.treeprocessors.register(UnsafeUrlTreeprocessor(md), "unsafe_urls", -10)


def render_chapter_html(markdown_text: str) -> str:
    """Render chapter markdown to HTML. Fenced code blocks with a language are highlighted by pygments."""

    extensions: list[Any] = [*MARKDOWN_EXTENSIONS, EscapeHtmlExtension()]

    return markdown.markdown(markdown_text, extensions=extensions, extension_configs=EXTENSION_CONFIGS)


def pygments_css() -> str:
    formatter = HtmlFormatter(style=PYGMENTS_STYLE)
    return formatter.get_style_defs(".highlight")
