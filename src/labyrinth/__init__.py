from . import corpus, errors, generator, page
from .generator import (
    GENERIC_ERROR_MESSAGE,
    GenerationRequest,
    PageGenerator,
    generate_labyrinth_page,
)

__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "GenerationRequest",
    "PageGenerator",
    "corpus",
    "errors",
    "generate_labyrinth_page",
    "generator",
    "page",
]
