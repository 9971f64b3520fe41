from __future__ import annotations

import html
import random
import string
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_TITLE = "Replicant EPHI"
DEFAULT_STYLESHEET = "/css/style.css"
PAGE_EXTENSION = ".html"

_BASE36_DIGITS = string.digits + string.ascii_lowercase
# A double carries ~53 bits, about 11 base-36 digits.
_MAX_ID_DIGITS = 11

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
    <head>
        <meta charset="UTF-8">
        <title>{title}</title>
        <link rel="stylesheet" href="{stylesheet}">
    </head>
    <body>
        <div id="container"><p>{content}</p></div>
    </body>
</html>"""


def random_page_id(rng: Optional[random.Random] = None) -> str:
    """Return the base-36 digits of a random fraction, without the ``0.`` prefix.

    May be empty when the fraction is exactly zero.
    """
    fraction = (rng or random).random()
    digits = []
    while fraction and len(digits) < _MAX_ID_DIGITS:
        fraction *= 36
        digit = int(fraction)
        digits.append(_BASE36_DIGITS[digit])
        fraction -= digit
    return "".join(digits)


class LinkFlyweight:
    """Flyweight for sharing the common parts of the <a> tag."""

    def __init__(self, base_path: str):
        self.base_path = base_path
        self.opening_tag = f'<a href="{base_path}'
        self.closing_tag = "</a>"

    def get_link(self, page_id: str, text: str) -> str:
        return (
            f'{self.opening_tag}{page_id}{PAGE_EXTENSION}">'
            f"{html.escape(text, quote=False)}{self.closing_tag}"
        )


@dataclass
class Fragment:
    text: str
    page_id: str


@dataclass
class GeneratedPage:
    """Result of one generation pass, before and after rendering."""

    base_path: str
    effective_block_size: int
    effective_total_size: int
    fragments: List[Fragment] = field(default_factory=list)
    text_length: int = 0
    iterations: int = 0
    budget_exhausted: bool = False

    def render(
        self, title: str = DEFAULT_TITLE, stylesheet: str = DEFAULT_STYLESHEET
    ) -> str:
        links = LinkFlyweight(self.base_path)
        content = "".join(links.get_link(f.page_id, f.text) for f in self.fragments)
        return PAGE_TEMPLATE.format(
            title=html.escape(title),
            stylesheet=html.escape(stylesheet),
            content=content,
        )
