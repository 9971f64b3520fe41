# Ensure tests import modules from the real labyrinth package under ``src``.
from src.labyrinth import corpus, errors, generator, page

__all__ = ["corpus", "errors", "generator", "page"]
