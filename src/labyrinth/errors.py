"""Exceptions raised while building a labyrinth page.

None of these leave :meth:`PageGenerator.generate`; they exist so the
operational log can tell a misconfigured front end from a broken corpus.
"""


class LabyrinthError(Exception):
    """Base class for labyrinth generation failures."""

    kind = "error"


class MissingParameterError(LabyrinthError):
    """A required parameter was not supplied at all."""

    kind = "missing_parameter"


class InvalidParameterError(LabyrinthError, ValueError):
    """A parameter was supplied but its value is unusable."""

    kind = "invalid_parameter"


class CorpusError(LabyrinthError):
    """The corpus cannot be sampled (e.g. it is empty)."""

    kind = "corpus"
