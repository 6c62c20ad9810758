from collections.abc import Mapping
from typing import Any

import httpx


WEEKLY_TRACK_CHART_METHOD = "user.getWeeklyTrackChart"


async def fetch_weekly_track_chart(
    api_url: str,
    api_key: str,
    username: str,
    from_uts: int,
    to_uts: int,
    timeout: float = 20.0,
    client: httpx.AsyncClient | None = None,
) -> Mapping[str, Any]:
    """Fetch the weekly track chart listing of a user for a unix time range."""

    params = {
        "method": WEEKLY_TRACK_CHART_METHOD,
        "user": username,
        "api_key": api_key,
        "from": str(from_uts),
        "to": str(to_uts),
        "format": "json",
    }
    headers = {"User-Agent": "playcalendar"}

    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as owned_client:
            response = await owned_client.get(api_url, params=params, headers=headers)
    else:
        response = await client.get(api_url, params=params, headers=headers)
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("Last.fm response is invalid")

    if "error" in payload:
        raise ValueError(f"Last.fm returned error {payload.get('error')}")

    return payload
