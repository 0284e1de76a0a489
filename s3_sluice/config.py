from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

# Process-wide defaults; read at call time so an embedding application
# may override them (e.g. ``s3_sluice.config.CONCURRENCY = 20``).
CONCURRENCY = 10  # threads
RETRIES = 3       # attempts after the first
RETRY_WAIT = 10   # seconds

DEFAULT_CONFIG = "config/config.yaml"


@dataclass(frozen=True)
class EngineSettings:
    concurrency: int = CONCURRENCY
    retries: int = RETRIES
    retry_wait: float = RETRY_WAIT

    @classmethod
    def defaults(cls) -> "EngineSettings":
        return cls(concurrency=CONCURRENCY, retries=RETRIES, retry_wait=RETRY_WAIT)

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "EngineSettings":
        """Build settings from the ``engine:`` section of a loaded YAML config."""
        base = cls.defaults()
        ecfg = (cfg.get("engine") or {}) if cfg else {}
        return cls(
            concurrency=int(ecfg.get("concurrency", base.concurrency)),
            retries=int(ecfg.get("retries", base.retries)),
            retry_wait=float(ecfg.get("retry_wait", base.retry_wait)),
        )

    def override(
        self,
        concurrency: Optional[int] = None,
        retries: Optional[int] = None,
        retry_wait: Optional[float] = None,
    ) -> "EngineSettings":
        return EngineSettings(
            concurrency=self.concurrency if concurrency is None else concurrency,
            retries=self.retries if retries is None else retries,
            retry_wait=self.retry_wait if retry_wait is None else retry_wait,
        )
