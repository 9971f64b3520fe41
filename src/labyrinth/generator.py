# labyrinth/generator.py
# Builds labyrinth pages from random, hyperlinked slices of a text corpus.
"""Labyrinth page generation.

A page is assembled by reading random blocks from the corpus, collapsing
line breaks and repeated spaces, and wrapping every block in a link to
another (randomly named) labyrinth page. Parameters arrive as raw text, the
way a web server passes them, and are parsed into :class:`GenerationRequest`
before the corpus is touched.
"""

from __future__ import annotations

import logging
import math
import random
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from src.shared.metrics import (
    LABYRINTH_BUDGET_EXHAUSTED,
    LABYRINTH_FRAGMENTS_GENERATED,
    LABYRINTH_GENERATION_FAILURES,
    LABYRINTH_PAGES_GENERATED,
)

from .corpus import CorpusHandle, corpus_size
from .errors import InvalidParameterError, LabyrinthError, MissingParameterError
from .page import (
    DEFAULT_STYLESHEET,
    DEFAULT_TITLE,
    Fragment,
    GeneratedPage,
    random_page_id,
)

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE = 80
DEFAULT_TOTAL_SIZE = 500
GENERIC_ERROR_MESSAGE = (
    "Replicant data could not be loaded. Please contact a system administrator."
)

_LINE_BREAKS = re.compile(r"(\r*\n)+")
_SPACE_RUNS = re.compile(r" +")


def normalize_text(text: str) -> str:
    """Collapse line breaks and runs of spaces into single spaces."""
    text = _LINE_BREAKS.sub(" ", text)
    return _SPACE_RUNS.sub(" ", text)


def iteration_budget(total_size: int, block_size: int) -> int:
    """Maximum number of reads allowed to fill ``total_size`` characters.

    Assumes that a corpus which is more than half whitespace is not worth
    reading further.
    """
    return math.ceil(total_size / block_size) * 2


def _required(params: Mapping[str, Optional[str]], name: str) -> str:
    value = params.get(name)
    if value is None:
        raise MissingParameterError(f"{name} argument missing")
    if value == "":
        raise InvalidParameterError(f"{name} argument is empty")
    return value


def _positive_int(
    params: Mapping[str, Optional[str]], name: str, default: int
) -> int:
    value = params.get(name)
    if value is None:
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        raise InvalidParameterError(
            f"{name} argument is not a positive integer: {value!r}"
        ) from None
    if parsed <= 0:
        raise InvalidParameterError(
            f"{name} argument is not a positive integer: {parsed}"
        )
    return parsed


@dataclass(frozen=True)
class GenerationRequest:
    """Validated generation parameters."""

    corpus: str
    base_path: str
    block_size: int = DEFAULT_BLOCK_SIZE
    total_size: int = DEFAULT_TOTAL_SIZE

    @classmethod
    def from_params(cls, params: Mapping[str, Optional[str]]) -> "GenerationRequest":
        base_path = _required(params, "base_path")
        if not base_path.endswith("/"):
            base_path += "/"
        corpus = _required(params, "corpus")
        return cls(
            corpus=corpus,
            base_path=base_path,
            block_size=_positive_int(params, "block_size", DEFAULT_BLOCK_SIZE),
            total_size=_positive_int(params, "total_size", DEFAULT_TOTAL_SIZE),
        )


class PageGenerator:
    """Produce labyrinth pages; one call per inbound request, no shared state."""

    def __init__(
        self,
        *,
        title: str = DEFAULT_TITLE,
        stylesheet: str = DEFAULT_STYLESHEET,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.title = title
        self.stylesheet = stylesheet
        self.rng = rng or random.Random()

    def generate(self, params: Mapping[str, Optional[str]]) -> Tuple[int, str]:
        """Return ``(status, body)`` for a raw parameter bag.

        Failures are logged in full and reported to the caller only as a 500
        with :data:`GENERIC_ERROR_MESSAGE`.
        """
        try:
            request = GenerationRequest.from_params(params)
            page = self.build(request)
        except LabyrinthError as e:
            logger.error(f"Labyrinth page generation failed ({e.kind}): {e}")
            LABYRINTH_GENERATION_FAILURES.labels(kind=e.kind).inc()
            return 500, GENERIC_ERROR_MESSAGE
        except OSError as e:
            logger.error(f"Labyrinth corpus I/O failed: {type(e).__name__}: {e}")
            LABYRINTH_GENERATION_FAILURES.labels(kind="io").inc()
            return 500, GENERIC_ERROR_MESSAGE
        except Exception:
            logger.exception("Unexpected error generating labyrinth page")
            LABYRINTH_GENERATION_FAILURES.labels(kind="unexpected").inc()
            return 500, GENERIC_ERROR_MESSAGE

        LABYRINTH_PAGES_GENERATED.inc()
        return 200, page.render(title=self.title, stylesheet=self.stylesheet)

    def build(self, request: GenerationRequest) -> GeneratedPage:
        """Sample the corpus for ``request``; raises on any failure."""
        size = corpus_size(request.corpus)
        block_size = min(size, request.block_size)
        total_size = min(size, request.total_size)
        logger.debug(f"Validated block_size argument value, set to {block_size}")
        logger.debug(f"Validated total_size argument value, set to {total_size}")

        page = GeneratedPage(
            base_path=request.base_path,
            effective_block_size=block_size,
            effective_total_size=total_size,
        )
        remaining = iteration_budget(total_size, block_size)

        with CorpusHandle(request.corpus, size) as corpus:
            while page.text_length < total_size and remaining > 0:
                offset = self.rng.randrange(size)
                raw = corpus.read_block(offset, block_size)
                text = normalize_text(raw.decode("utf-8", errors="replace"))

                if page.text_length + len(text) > total_size:
                    text = text[: total_size - page.text_length]
                    page.text_length = total_size
                else:
                    page.text_length += len(text)

                page.fragments.append(Fragment(text, random_page_id(self.rng)))
                page.iterations += 1
                remaining -= 1

        if page.text_length < total_size:
            page.budget_exhausted = True
            LABYRINTH_BUDGET_EXHAUSTED.inc()
            logger.info(
                "Iteration budget exhausted after %d reads; serving %d of %d characters.",
                page.iterations,
                page.text_length,
                total_size,
            )
        LABYRINTH_FRAGMENTS_GENERATED.inc(len(page.fragments))
        return page


def generate_labyrinth_page(
    params: Mapping[str, Optional[str]], rng: Optional[random.Random] = None
) -> Tuple[int, str]:
    """Convenience wrapper around :meth:`PageGenerator.generate`."""
    return PageGenerator(rng=rng).generate(params)
