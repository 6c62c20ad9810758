from pydantic import BaseModel
from pydantic import Field


class CalendarCellPayload(BaseModel):
    """Single slot of the 6x7 month grid."""

    index: int
    row: int
    column: int
    x: int
    y: int
    size: int
    date: str | None = None
    day: int | None = None
    count: int = 0
    bucket: int | None = None
    color: str | None = None


class ArrowPayload(BaseModel):
    x: float
    y: float
    w: float
    h: float


class CalendarResponse(BaseModel):
    """Everything a host panel needs to paint one month."""

    year: int
    month: int
    title: str
    day_labels: list[str]
    arrows: dict[str, ArrowPayload]
    cells: list[CalendarCellPayload]
    hover: CalendarCellPayload | None = None
    total: int


class PointerInput(BaseModel):
    x: float
    y: float


class ClickInput(PointerInput):
    width: float = Field(gt=0)


class ClickResponse(BaseModel):
    navigated: int | None
    year: int
    month: int


class PlayRecorded(BaseModel):
    date: str
    count: int


class RefreshResponse(BaseModel):
    status: str
    year: int
    month: int


class DayCount(BaseModel):
    date: str
    count: int
    bucket: int
