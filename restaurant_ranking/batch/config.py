from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class BatchConfig:
    page_size: int = int(os.getenv("BATCH_PAGE_SIZE", "10"))
    concurrency: int = int(os.getenv("BATCH_CONCURRENCY", "10"))
    limit: int | None = None
    start_from: int = 0
    skip_existing: bool = False


DEFAULT_BATCH_CONFIG = BatchConfig()
