import asyncio
import logging
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from pathlib import Path

import httpx

from playcalendar.account import LastFmCredentials
from playcalendar.account import load_account
from playcalendar.date_keys import from_date
from playcalendar.services.calendar_service import BucketPolicy
from playcalendar.services.calendar_service import CalendarCell
from playcalendar.services.calendar_service import CellGeometry
from playcalendar.services.calendar_service import MonthCursor
from playcalendar.services.calendar_service import advance
from playcalendar.services.calendar_service import arrow_at
from playcalendar.services.calendar_service import cell_at
from playcalendar.services.scrobble_service import fetch_month
from playcalendar.settings import Settings
from playcalendar.store import LoadOutcome
from playcalendar.store import PlayCountStore
from playcalendar.store import read_counts_file
from playcalendar.store import write_counts_file


logger = logging.getLogger(__name__)


@dataclass
class WidgetState:
    """Everything the calendar panel needs between host callbacks."""

    cursor: MonthCursor
    store: PlayCountStore
    counts_path: Path
    credentials: LastFmCredentials
    geometry: CellGeometry = CellGeometry()
    policy: BucketPolicy = BucketPolicy()
    api_url: str = "https://ws.audioscrobbler.com/2.0/"
    fetch_timeout: float = 20.0
    load_outcome: LoadOutcome = LoadOutcome.LOADED
    hover: CalendarCell | None = None
    in_flight: set[MonthCursor] = field(default_factory=set)
    tasks: set[asyncio.Task] = field(default_factory=set)


def build_widget_state(
    app_settings: Settings, today: datetime | None = None
) -> WidgetState:
    """Load account and counts files and open the calendar on the current month."""

    now = today or datetime.now()
    credentials = load_account(app_settings.config_path)
    store, outcome = read_counts_file(app_settings.counts_path)
    logger.info(
        "Loaded %d play count days from %s (%s)",
        len(store),
        app_settings.counts_path,
        outcome.value,
    )

    return WidgetState(
        cursor=MonthCursor.containing(now.date()),
        store=store,
        counts_path=app_settings.counts_path,
        credentials=credentials,
        geometry=CellGeometry.from_settings(app_settings),
        policy=BucketPolicy.from_settings(app_settings),
        api_url=app_settings.lastfm_api_url,
        fetch_timeout=app_settings.lastfm_timeout_seconds,
        load_outcome=outcome,
    )


def persist(state: WidgetState) -> None:
    try:
        write_counts_file(state.counts_path, state.store)
    except OSError as exc:
        logger.warning("Cannot write play counts to %s: %s", state.counts_path, exc)


def record_local_play(state: WidgetState, now: datetime | None = None) -> int:
    """Count one locally played track on today's date and persist."""

    day_key = from_date((now or datetime.now()).date())
    count = state.store.increment(day_key)
    persist(state)
    _reresolve_hover(state)
    return count


async def refresh(
    state: WidgetState, client: httpx.AsyncClient | None = None
) -> dict[str, int] | None:
    """Fetch the displayed month and merge it into the store.

    Returns the merged additions, or None when the fetch was skipped.
    """

    if not state.credentials.is_configured:
        logger.debug("Scrobble account is not configured, skipping refresh")
        return None

    cursor = state.cursor
    if cursor in state.in_flight:
        logger.debug("Refresh for %d-%02d already running", cursor.year, cursor.month)
        return None

    state.in_flight.add(cursor)
    try:
        additions = await fetch_month(
            state.credentials,
            cursor.year,
            cursor.month,
            api_url=state.api_url,
            timeout=state.fetch_timeout,
            client=client,
        )
    finally:
        state.in_flight.discard(cursor)

    if additions:
        state.store.merge(additions)
        persist(state)
        _reresolve_hover(state)
        logger.info(
            "Merged %d scrobble days for %d-%02d",
            len(additions),
            cursor.year,
            cursor.month,
        )
    return additions


def schedule_refresh(state: WidgetState) -> asyncio.Task:
    """Start a refresh in the background on the running event loop."""

    task = asyncio.get_running_loop().create_task(refresh(state))
    state.tasks.add(task)
    task.add_done_callback(state.tasks.discard)
    task.add_done_callback(_log_refresh_failure)
    return task


def _log_refresh_failure(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Background refresh failed", exc_info=task.exception())


async def run_periodic_refresh(state: WidgetState, interval_seconds: float) -> None:
    while True:
        try:
            await refresh(state)
        except Exception:
            logger.exception("Periodic refresh failed, retrying next interval")
        await asyncio.sleep(interval_seconds)


def navigate(state: WidgetState, delta: int) -> MonthCursor:
    state.cursor = advance(state.cursor, delta)
    state.hover = None
    return state.cursor


def hover(state: WidgetState, px: float, py: float) -> CalendarCell | None:
    state.hover = cell_at(px, py, state.cursor, state.store, state.geometry, state.policy)
    return state.hover


def _reresolve_hover(state: WidgetState) -> None:
    """Re-read the hovered cell so its count matches the store."""

    if state.hover is not None:
        hover(state, state.hover.x, state.hover.y)


def click(state: WidgetState, px: float, py: float, width: float) -> int | None:
    """Apply a header arrow click; returns the navigation delta or None."""

    delta = arrow_at(px, py, width, state.geometry)
    if delta is not None:
        navigate(state, delta)
    return delta
