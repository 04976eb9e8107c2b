from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── App ──────────────────────────────────────────────
    app_name: str = "kvsplit"
    app_version: str = "0.1.0"
    debug: bool = False
    api_key: str = "changeme"

    # ── Split planning ───────────────────────────────────
    max_splits_per_call: int = Field(default=1000, ge=1)
    # Members per sorted-set split; a 200-member set yields 10 splits.
    target_split_size: int = Field(default=20, ge=1)
    # COUNT hint passed to every SCAN call.
    scan_count: int = Field(default=100, ge=1)
    # Finite window the equal-width score grid is laid over.  The first and
    # last ranges of every key are still open to -inf / +inf.  Set it to the
    # score range the tables actually use: with the default, millisecond
    # epoch timestamps (~1.7e12) all land in the last range, so a key yields
    # one split holding every member and N-1 empty ones.  For such tables set
    # SCORE_WINDOW_MIN / SCORE_WINDOW_MAX around the expected timestamps.
    score_window_min: float = 0.0
    score_window_max: float = 4294967296.0

    # ── Redis ────────────────────────────────────────────
    redis_password: str = ""
    redis_socket_timeout: float = Field(default=5.0, gt=0)

    # ── Server ───────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000

    @model_validator(mode="after")
    def _check_score_window(self) -> "Settings":
        if not self.score_window_min < self.score_window_max:
            raise ValueError("score_window_min must be below score_window_max")
        return self

    @property
    def score_window(self) -> tuple[float, float]:
        return (self.score_window_min, self.score_window_max)


settings = Settings()
