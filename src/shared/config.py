"""Environment-driven configuration for the labyrinth service."""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value


@dataclass
class Config:
    # General
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    APP_ENV: str = field(default_factory=lambda: os.getenv("APP_ENV", "production"))
    DEBUG: bool = field(
        default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true"
    )

    # Labyrinth
    LABYRINTH_CORPUS: str = field(
        default_factory=lambda: os.getenv("LABYRINTH_CORPUS", "/app/data/corpus.txt")
    )
    LABYRINTH_BASE_PATH: str = field(
        default_factory=lambda: os.getenv("LABYRINTH_BASE_PATH", "/ephi/")
    )
    LABYRINTH_BLOCK_SIZE: Optional[str] = field(
        default_factory=lambda: _optional_env("LABYRINTH_BLOCK_SIZE")
    )
    LABYRINTH_TOTAL_SIZE: Optional[str] = field(
        default_factory=lambda: _optional_env("LABYRINTH_TOTAL_SIZE")
    )
    LABYRINTH_PAGE_TITLE: str = field(
        default_factory=lambda: os.getenv("LABYRINTH_PAGE_TITLE", "Replicant EPHI")
    )
    LABYRINTH_STYLESHEET: str = field(
        default_factory=lambda: os.getenv("LABYRINTH_STYLESHEET", "/css/style.css")
    )

    # Service
    LABYRINTH_HOST: str = field(
        default_factory=lambda: os.getenv("LABYRINTH_HOST", "127.0.0.1")
    )
    LABYRINTH_API_PORT: int = field(
        default_factory=lambda: int(os.getenv("LABYRINTH_API_PORT", 8080))
    )
    HONEYPOT_LOG_FILE: str = field(
        default_factory=lambda: os.getenv(
            "HONEYPOT_LOG_FILE", "/app/logs/labyrinth_hits.log"
        )
    )

    def generation_params(self) -> Dict[str, str]:
        """Parameter bag handed to the page generator, sizes only when set."""
        params = {
            "corpus": self.LABYRINTH_CORPUS,
            "base_path": self.LABYRINTH_BASE_PATH,
        }
        if self.LABYRINTH_BLOCK_SIZE is not None:
            params["block_size"] = self.LABYRINTH_BLOCK_SIZE
        if self.LABYRINTH_TOTAL_SIZE is not None:
            params["total_size"] = self.LABYRINTH_TOTAL_SIZE
        return params


CONFIG = Config()


def reload_config() -> Config:
    """Re-read the environment into the shared ``CONFIG`` instance."""
    global CONFIG
    CONFIG = Config()
    return CONFIG
