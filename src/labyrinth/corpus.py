"""Read-only, random-access view of the labyrinth corpus."""

from __future__ import annotations

import logging
import mmap
import os
from pathlib import Path
from typing import BinaryIO, Optional

from .errors import CorpusError

logger = logging.getLogger(__name__)


def corpus_size(path: str | Path) -> int:
    """Return the corpus length in bytes, rejecting empty files."""
    size = os.stat(path).st_size
    if size == 0:
        raise CorpusError(f"corpus file {path} is empty")
    return size


class CorpusHandle:
    """Memory-mapped corpus opened for sampling.

    Reads are slices of the map at explicit offsets, so concurrent requests
    never share a file cursor. Use as a context manager; :meth:`close` never
    raises.
    """

    def __init__(self, path: str | Path, size: int) -> None:
        self.path = Path(path)
        self.size = size
        self._file: Optional[BinaryIO] = None
        self._map: Optional[mmap.mmap] = None

    @property
    def closed(self) -> bool:
        return self._file is None

    def open(self) -> "CorpusHandle":
        self._file = self.path.open("rb")
        try:
            self._map = mmap.mmap(self._file.fileno(), 0, access=mmap.ACCESS_READ)
        except (OSError, ValueError):
            self.close()
            raise
        logger.debug("Opened corpus %s (%d bytes).", self.path, self.size)
        return self

    def read_block(self, offset: int, length: int) -> bytes:
        """Read ``length`` bytes from ``offset``, wrapping to the start of the file.

        Only a corpus shorter than ``length`` yields fewer bytes.
        """
        if self._map is None:
            raise OSError(f"corpus {self.path} is not open")
        data = self._map[offset : offset + length]
        if len(data) < length:
            data += self._map[0 : length - len(data)]
        return data

    def close(self) -> None:
        if self._map is not None:
            try:
                self._map.close()
            except (OSError, BufferError) as e:
                logger.error(f"Unable to unmap corpus {self.path}: {e}")
            self._map = None
        if self._file is not None:
            try:
                self._file.close()
                logger.debug("Closed corpus %s.", self.path)
            except OSError as e:
                logger.error(f"Unable to close corpus {self.path}: {e}")
            self._file = None

    def __enter__(self) -> "CorpusHandle":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
