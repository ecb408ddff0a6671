import re
from typing import Iterable, Pattern
from bs4 import BeautifulSoup
from bs4.element import PreformattedString

# Elements whose text never renders
SKIP_TAGS = {"script", "style", "noscript", "template", "head", "title", "meta"}
HIDDEN_STYLE = re.compile(r'display:\s*none|visibility:\s*hidden')


def compile_patterns(patterns: Iterable[str]) -> list[Pattern[str]]:
    """Compile text patterns case-insensitively."""
    return [re.compile(p, re.I) for p in patterns]


def is_hidden(elem) -> bool:
    """True when the markup alone hides `elem` (stylesheets are not consulted)."""
    if elem.name in SKIP_TAGS:
        return True
    if elem.has_attr('hidden'):
        return True
    if elem.get('aria-hidden') == 'true':
        return True
    style = elem.get('style', '')
    return isinstance(style, str) and bool(HIDDEN_STYLE.search(style))


def _normalise(text: str) -> str:
    return " ".join(text.split())


def visible_text_blocks(html: str) -> list[str]:
    """Return the text of every element that carries text of its own, in document order.

    An element's text includes its inline children, so ``Welcome <b>back</b>``
    yields ``"Welcome back"`` (and ``"back"`` for the <b>).
    """
    soup = BeautifulSoup(html, 'html.parser')
    for elem in soup.find_all(is_hidden):
        if not elem.decomposed:
            elem.decompose()

    blocks = []
    for elem in soup.find_all(True):
        own = [s for s in elem.find_all(string=True, recursive=False)
               if not isinstance(s, PreformattedString)]
        if not any(s.strip() for s in own):
            continue
        text = _normalise(elem.get_text())
        if text:
            blocks.append(text)
    return blocks


def find_text(html: str, patterns: list[Pattern[str]]) -> str | None:
    """Return the first visible text block matching any pattern.

    Patterns are tried in order, so an earlier pattern wins over a later one
    even if the later one matches text higher up the page.
    """
    if not patterns:
        return None
    blocks = visible_text_blocks(html)
    for pattern in patterns:
        for block in blocks:
            if pattern.search(block):
                return block
    return None
