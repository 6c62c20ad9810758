from datetime import datetime

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request

from playcalendar.api.schemas.calendar import ArrowPayload
from playcalendar.api.schemas.calendar import CalendarCellPayload
from playcalendar.api.schemas.calendar import CalendarResponse
from playcalendar.api.schemas.calendar import ClickInput
from playcalendar.api.schemas.calendar import ClickResponse
from playcalendar.api.schemas.calendar import DayCount
from playcalendar.api.schemas.calendar import PlayRecorded
from playcalendar.api.schemas.calendar import PointerInput
from playcalendar.api.schemas.calendar import RefreshResponse
from playcalendar.date_keys import InvalidDateError
from playcalendar.date_keys import MalformedKeyError
from playcalendar.date_keys import decode
from playcalendar.date_keys import from_date
from playcalendar.services.calendar_service import DAY_LABELS
from playcalendar.services.calendar_service import CalendarCell
from playcalendar.services.calendar_service import MonthCursor
from playcalendar.services.calendar_service import arrow_rects
from playcalendar.services.calendar_service import cell_at
from playcalendar.services.calendar_service import intensity_bucket
from playcalendar.services.calendar_service import layout
from playcalendar.services.calendar_service import month_title
from playcalendar.services.widget_service import WidgetState
from playcalendar.services.widget_service import click
from playcalendar.services.widget_service import hover
from playcalendar.services.widget_service import record_local_play
from playcalendar.services.widget_service import schedule_refresh


router = APIRouter()


async def get_widget_state(request: Request) -> WidgetState:
    return request.app.state.widget


def cell_payload(cell: CalendarCell) -> CalendarCellPayload:
    return CalendarCellPayload(
        index=cell.index,
        row=cell.row,
        column=cell.column,
        x=cell.x,
        y=cell.y,
        size=cell.size,
        date=cell.date_key,
        day=cell.day,
        count=cell.count,
        bucket=cell.bucket,
        color=cell.color,
    )


def calendar_payload(
    state: WidgetState, cursor: MonthCursor, width: float
) -> CalendarResponse:
    cells = layout(cursor, state.store, state.geometry, state.policy)
    hovered = state.hover if cursor == state.cursor else None
    arrows = arrow_rects(width, state.geometry)
    return CalendarResponse(
        year=cursor.year,
        month=cursor.month,
        title=month_title(cursor),
        day_labels=list(DAY_LABELS),
        arrows={
            name: ArrowPayload(x=rect.x, y=rect.y, w=rect.w, h=rect.h)
            for name, rect in arrows.items()
        },
        cells=[cell_payload(cell) for cell in cells],
        hover=cell_payload(hovered) if hovered is not None else None,
        total=sum(cell.count for cell in cells),
    )


@router.get("/")
async def root() -> dict[str, str]:
    """Return the service name so a host panel can check it reached the calendar."""

    return {"service": "playcalendar", "message": "Daily play count calendar"}


@router.get("/health/live")
async def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/calendar")
async def get_current_calendar(
    width: float = Query(default=300, gt=0),
    state: WidgetState = Depends(get_widget_state),
) -> CalendarResponse:
    """Return the paint model for the displayed month."""

    return calendar_payload(state, state.cursor, width)


@router.get("/calendar/cell")
async def get_cell_at(
    x: float,
    y: float,
    state: WidgetState = Depends(get_widget_state),
) -> CalendarCellPayload:
    """Resolve a pointer position in the displayed month to its day cell."""

    cell = cell_at(x, y, state.cursor, state.store, state.geometry, state.policy)
    if cell is None:
        raise HTTPException(status_code=404, detail="no day at position")
    return cell_payload(cell)


@router.get("/calendar/{year}/{month}")
async def get_month_calendar(
    year: int,
    month: int,
    width: float = Query(default=300, gt=0),
    state: WidgetState = Depends(get_widget_state),
) -> CalendarResponse:
    """Return the paint model for an arbitrary month without moving the cursor."""

    try:
        cursor = MonthCursor(year, month)
    except InvalidDateError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return calendar_payload(state, cursor, width)


@router.get("/counts/{date_key}")
async def get_day_count(
    date_key: str, state: WidgetState = Depends(get_widget_state)
) -> DayCount:
    try:
        decode(date_key)
    except MalformedKeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    count = state.store.count_for(date_key)
    return DayCount(
        date=date_key, count=count, bucket=intensity_bucket(count, state.policy)
    )


@router.post("/input/move")
async def pointer_move(
    payload: PointerInput, state: WidgetState = Depends(get_widget_state)
) -> CalendarCellPayload | None:
    """Update the hovered cell; returns it for tooltip drawing."""

    cell = hover(state, payload.x, payload.y)
    return cell_payload(cell) if cell is not None else None


@router.post("/input/click")
async def pointer_click(
    payload: ClickInput, state: WidgetState = Depends(get_widget_state)
) -> ClickResponse:
    """Handle header arrow clicks; navigation also refreshes the new month."""

    delta = click(state, payload.x, payload.y, payload.width)
    if delta is not None:
        schedule_refresh(state)
    return ClickResponse(
        navigated=delta, year=state.cursor.year, month=state.cursor.month
    )


@router.post("/plays", status_code=201)
async def record_play(state: WidgetState = Depends(get_widget_state)) -> PlayRecorded:
    """Record one locally played track on today's date."""

    now = datetime.now()
    count = record_local_play(state, now)
    return PlayRecorded(date=from_date(now.date()), count=count)


@router.post("/refresh", status_code=202)
async def trigger_refresh(
    state: WidgetState = Depends(get_widget_state),
) -> RefreshResponse:
    if not state.credentials.is_configured:
        status = "not_configured"
    else:
        schedule_refresh(state)
        status = "scheduled"
    return RefreshResponse(
        status=status, year=state.cursor.year, month=state.cursor.month
    )
