from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class EmbeddingConfig:
    api_key: str = os.getenv("OPENAI_API_KEY", "")
    model_name: str = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    dimension: int = int(os.getenv("OPENAI_EMBEDDING_DIMENSION", "1536"))
    timeout: float = float(os.getenv("OPENAI_EMBEDDING_TIMEOUT", "30"))
    request_batch_size: int = 100
    local_model_name: str = "all-MiniLM-L6-v2"


DEFAULT_EMBEDDING_CONFIG = EmbeddingConfig()
