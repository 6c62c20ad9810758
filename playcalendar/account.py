import json
import logging
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError


logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "YOUR_LASTFM_API_KEY"
PLACEHOLDER_USERNAME = "YOUR_LASTFM_USERNAME"


class ConfigMissingOrInvalid(Exception):
    """Raised when the account file is absent or does not hold credentials."""


class LastFmCredentials(BaseModel):
    """Scrobbling account credentials as stored in the account file."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(default=PLACEHOLDER_API_KEY, alias="apiKey")
    username: str = PLACEHOLDER_USERNAME

    @property
    def is_configured(self) -> bool:
        """Placeholder or blank values mean fetching must be skipped."""

        api_key = self.api_key.strip()
        username = self.username.strip()
        return bool(
            api_key
            and username
            and api_key != PLACEHOLDER_API_KEY
            and username != PLACEHOLDER_USERNAME
        )


def parse_account_file(path: Path) -> LastFmCredentials:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigMissingOrInvalid(f"{path} does not exist") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigMissingOrInvalid(f"{path} cannot be read") from exc

    try:
        return LastFmCredentials.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigMissingOrInvalid(f"{path} is not a valid account file") from exc


def load_account(path: Path) -> LastFmCredentials:
    """Load credentials, writing placeholder defaults when the file is unusable."""

    try:
        return parse_account_file(path)
    except ConfigMissingOrInvalid as exc:
        logger.warning("Using placeholder account settings: %s", exc)

    credentials = LastFmCredentials()
    try:
        write_account(path, credentials)
    except OSError as exc:
        logger.warning("Cannot write placeholder account file %s: %s", path, exc)
    return credentials


def write_account(path: Path, credentials: LastFmCredentials) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = credentials.model_dump(by_alias=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
