from __future__ import annotations
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]

STORE_BACKENDS = ("memory", "redis")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    store_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "analytics"
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("*",)
    export_dir: Path = REPO_ROOT / "data" / "parquet"

    @classmethod
    def from_env(cls) -> "Settings":
        backend = os.getenv("ANALYTICS_STORE", "memory").strip().lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(f"ANALYTICS_STORE must be one of: {', '.join(STORE_BACKENDS)} (got {backend!r})")
        origins = tuple(o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip())
        return cls(
            store_backend=backend,
            redis_url=os.getenv("REDIS_URL", cls.redis_url),
            redis_prefix=os.getenv("REDIS_PREFIX", cls.redis_prefix),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            cors_origins=origins or ("*",),
            export_dir=Path(os.getenv("EXPORT_DIR", str(cls.export_dir))),
        )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
