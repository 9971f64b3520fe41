import os
import string
import tempfile

import pytest

# Set up test environment variables before importing any application code.
# src.labyrinth.labyrinth_api builds its app at import time.
temp_dir = tempfile.gettempdir()
test_data_dir = os.path.join(temp_dir, "test_data")
test_logs_dir = os.path.join(temp_dir, "test_logs")

os.makedirs(test_data_dir, exist_ok=True)
os.makedirs(test_logs_dir, exist_ok=True)

DEFAULT_CORPUS = os.path.join(test_data_dir, "labyrinth_corpus.txt")
with open(DEFAULT_CORPUS, "w", encoding="utf-8") as fh:
    fh.write((string.ascii_letters * 20)[:1000])

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LABYRINTH_CORPUS", DEFAULT_CORPUS)
os.environ.setdefault("LABYRINTH_BASE_PATH", "/ephi/")
os.environ.setdefault(
    "HONEYPOT_LOG_FILE", os.path.join(test_logs_dir, "test_labyrinth_hits.log")
)


@pytest.fixture
def make_corpus(tmp_path):
    """Write ``content`` (str or bytes) to a corpus file and return its path."""

    def _make(content, name="corpus.txt"):
        path = tmp_path / name
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return str(path)

    return _make
