import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httpx

from playcalendar.account import LastFmCredentials
from playcalendar.clients.lastfm_client import fetch_weekly_track_chart
from playcalendar.date_keys import encode
from playcalendar.date_keys import from_date


logger = logging.getLogger(__name__)


class RemoteFetchFailure(Exception):
    """Raised when a scrobble listing cannot be fetched or parsed."""


def month_range(year: int, month: int) -> tuple[int, int]:
    """Return unix seconds from local midnight on the 1st to midnight after the last day."""

    encode(year, month, 1)
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return int(start.timestamp()), int(end.timestamp())


def _track_items(payload: Mapping[str, Any]) -> list[Any]:
    chart = payload.get("weeklytrackchart")
    if not isinstance(chart, Mapping):
        return []

    tracks = chart.get("track")
    if isinstance(tracks, list):
        return tracks
    if isinstance(tracks, Mapping):
        return [tracks]
    return []


def _play_timestamp(track: Any) -> int | None:
    if not isinstance(track, Mapping):
        return None
    played = track.get("date")
    if not isinstance(played, Mapping):
        return None

    raw_uts = played.get("uts")
    if isinstance(raw_uts, bool):
        return None
    try:
        return int(raw_uts)
    except (TypeError, ValueError, OverflowError):
        return None


def plays_by_day(payload: Mapping[str, Any]) -> dict[str, int]:
    """Count plays per local calendar day from a weekly track chart payload.

    Every track record with a play timestamp adds one play to its day.
    Records without a usable timestamp are ignored.
    """

    plays: dict[str, int] = {}
    for track in _track_items(payload):
        uts = _play_timestamp(track)
        if uts is None:
            continue
        try:
            day_key = from_date(datetime.fromtimestamp(uts).date())
        except (OverflowError, OSError, ValueError):
            logger.warning("Skipping scrobble with out-of-range timestamp %s", uts)
            continue
        plays[day_key] = plays.get(day_key, 0) + 1
    return plays


async def fetch_month_or_raise(
    credentials: LastFmCredentials,
    year: int,
    month: int,
    api_url: str,
    timeout: float = 20.0,
    client: httpx.AsyncClient | None = None,
) -> dict[str, int]:
    from_uts, to_uts = month_range(year, month)

    try:
        payload = await fetch_weekly_track_chart(
            api_url=api_url,
            api_key=credentials.api_key,
            username=credentials.username,
            from_uts=from_uts,
            to_uts=to_uts,
            timeout=timeout,
            client=client,
        )
        return plays_by_day(payload)
    except (httpx.HTTPError, ValueError, TypeError, OverflowError, RecursionError) as exc:
        raise RemoteFetchFailure(f"scrobble fetch for {year}-{month:02d} failed") from exc


async def fetch_month(
    credentials: LastFmCredentials,
    year: int,
    month: int,
    api_url: str,
    timeout: float = 20.0,
    client: httpx.AsyncClient | None = None,
) -> dict[str, int]:
    """Fetch one month of scrobbles as per-day counts, or `{}` on failure."""

    try:
        return await fetch_month_or_raise(
            credentials, year, month, api_url=api_url, timeout=timeout, client=client
        )
    except RemoteFetchFailure as exc:
        logger.warning("%s: %s", exc, exc.__cause__)
        return {}
