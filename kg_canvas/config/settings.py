# kg_canvas/config/settings.py

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReexpansionMode(str, Enum):
    """
    What happens when a paper that was already expanded is expanded again.

    APPEND  - keep earlier concept/citation clusters and add a fresh round.
    REPLACE - drop the paper's earlier clusters before adding the new one.
    """
    APPEND = "append"
    REPLACE = "replace"


class LayoutDirection(str, Enum):
    TOP_BOTTOM = "TB"
    LEFT_RIGHT = "LR"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="KG_CANVAS_",
    )

    # ------------------------------------------------------------------
    # Language model (Ollama-compatible chat endpoint)
    # ------------------------------------------------------------------
    OLLAMA_API_URL: str = Field(
        default="http://localhost:11434",
        description="Base URL of the local Ollama server.",
    )

    OLLAMA_MODEL: str = Field(
        default="llama3.2:3b",
        description="Model name passed to /api/chat.",
    )

    LLM_TIMEOUT_SECONDS: float = Field(
        default=120.0,
        description="Per-request timeout for language-model calls.",
    )

    CONCEPT_TEMPERATURE: float = Field(default=0.3)
    RELATIONSHIP_TEMPERATURE: float = Field(
        default=0.2,
        description="Kept low so relationship classification is consistent.",
    )
    CHAT_TEMPERATURE: float = Field(default=0.7)

    # ------------------------------------------------------------------
    # Bibliographic search
    # ------------------------------------------------------------------
    SEMANTIC_SCHOLAR_API_URL: str = Field(
        default="https://api.semanticscholar.org/graph/v1",
        description="Base URL of the Semantic Scholar Graph API.",
    )

    SEMANTIC_SCHOLAR_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="Optional API key sent as x-api-key.",
    )

    SEMANTIC_SCHOLAR_TIMEOUT_SECONDS: float = Field(default=30.0)

    REFERENCE_FETCH_LIMIT: int = Field(
        default=20,
        description="How many references to request per paper.",
    )

    MAX_CITATIONS_PER_EXPANSION: int = Field(
        default=10,
        description="How many fetched references become ghost nodes on expansion.",
    )

    # ------------------------------------------------------------------
    # Evidence / concepts
    # ------------------------------------------------------------------
    MAX_CHUNKS: int = Field(
        default=5,
        description="Top-N citation chunks kept per relationship analysis.",
    )

    EVIDENCE_MAX_LENGTH: int = Field(
        default=2000,
        description="Character budget for the evidence sent to the classifier.",
    )

    MAX_CONCEPTS: int = Field(
        default=8,
        description="Upper bound on concepts kept from one expansion reply.",
    )

    CHAT_HISTORY_WINDOW: int = Field(
        default=4,
        description="How many trailing chat messages are replayed to the model.",
    )

    # ------------------------------------------------------------------
    # Graph / layout
    # ------------------------------------------------------------------
    NODE_WIDTH: float = Field(default=280.0)
    NODE_HEIGHT: float = Field(default=200.0)
    NODE_SEP: float = Field(
        default=100.0,
        description="Horizontal gap between nodes of the same rank.",
    )
    RANK_SEP: float = Field(
        default=150.0,
        description="Gap between consecutive ranks.",
    )

    LAYOUT_DIRECTION: LayoutDirection = Field(default=LayoutDirection.TOP_BOTTOM)

    REEXPANSION_MODE: ReexpansionMode = Field(
        default=ReexpansionMode.APPEND,
        description=(
            "append: repeated expansion adds another concept cluster. "
            "replace: repeated expansion swaps out the previous cluster."
        ),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Construct Settings once per process.
    """
    return Settings()


settings = get_settings()
