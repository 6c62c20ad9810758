from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    Bucket and geometry values are display policy and may be tuned freely.
    """

    data_dir: Path = Path(".")
    config_filename: str = "github_calendar_config.json"
    counts_filename: str = "github_playcounts.json"

    lastfm_api_url: str = "https://ws.audioscrobbler.com/2.0/"
    lastfm_timeout_seconds: float = 20.0
    refresh_interval_seconds: int = 3600

    bucket_divisor: int = 3
    bucket_max: int = 4
    palette: list[str] = ["#ebedf0", "#9be9a8", "#40c463", "#30a14e", "#216e39"]

    cell_size: int = 15
    cell_margin: int = 2
    header_height: int = 30
    arrow_size: int = 20

    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def config_path(self) -> Path:
        return self.data_dir / self.config_filename

    @property
    def counts_path(self) -> Path:
        return self.data_dir / self.counts_filename
