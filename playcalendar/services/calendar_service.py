import calendar
from dataclasses import dataclass
from dataclasses import field
from datetime import date

from playcalendar.date_keys import days_in_month
from playcalendar.date_keys import encode
from playcalendar.settings import Settings
from playcalendar.store import PlayCountStore


GRID_COLUMNS = 7
GRID_ROWS = 6
GRID_SLOTS = GRID_COLUMNS * GRID_ROWS
DAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
DEFAULT_PALETTE = ("#ebedf0", "#9be9a8", "#40c463", "#30a14e", "#216e39")


@dataclass(frozen=True)
class MonthCursor:
    """Displayed year and month."""

    year: int
    month: int

    def __post_init__(self) -> None:
        encode(self.year, self.month, 1)

    @classmethod
    def containing(cls, day: date) -> "MonthCursor":
        return cls(day.year, day.month)


@dataclass(frozen=True)
class CellGeometry:
    cell_size: int = 15
    cell_margin: int = 2
    header_height: int = 30
    arrow_size: int = 20

    @property
    def pitch(self) -> int:
        return self.cell_size + self.cell_margin

    @property
    def grid_top(self) -> int:
        """First pixel row below the header and the day-label band."""

        return self.header_height + self.cell_size

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "CellGeometry":
        return cls(
            cell_size=app_settings.cell_size,
            cell_margin=app_settings.cell_margin,
            header_height=app_settings.header_height,
            arrow_size=app_settings.arrow_size,
        )


@dataclass(frozen=True)
class BucketPolicy:
    """Maps a play count to an intensity bucket and its palette color."""

    divisor: int = 3
    max_bucket: int = 4
    palette: tuple[str, ...] = field(default=DEFAULT_PALETTE)

    def __post_init__(self) -> None:
        if self.divisor < 1:
            raise ValueError("bucket divisor must be at least 1")
        if self.max_bucket < 0:
            raise ValueError("max bucket must be non-negative")
        if len(self.palette) != self.max_bucket + 1:
            raise ValueError(
                f"palette needs {self.max_bucket + 1} colors, got {len(self.palette)}"
            )

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "BucketPolicy":
        return cls(
            divisor=app_settings.bucket_divisor,
            max_bucket=app_settings.bucket_max,
            palette=tuple(app_settings.palette),
        )


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.w and self.y <= py <= self.y + self.h


@dataclass(frozen=True)
class CalendarCell:
    index: int
    row: int
    column: int
    x: int
    y: int
    size: int
    date_key: str | None = None
    day: int | None = None
    count: int = 0
    bucket: int | None = None
    color: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.date_key is None


def intensity_bucket(count: int, policy: BucketPolicy = BucketPolicy()) -> int:
    """Map daily play count to a heatmap level in range 0..max_bucket."""

    if count <= 0:
        return 0
    return min(count // policy.divisor, policy.max_bucket)


def bucket_color(bucket: int, policy: BucketPolicy = BucketPolicy()) -> str:
    return policy.palette[bucket]


def advance(cursor: MonthCursor, delta: int) -> MonthCursor:
    """Move the cursor one month back or forward, rolling the year over."""

    if delta not in (-1, 1):
        raise ValueError(f"delta must be -1 or +1, got {delta}")

    month = cursor.month + delta
    year = cursor.year
    if month == 0:
        month = 12
        year -= 1
    elif month == 13:
        month = 1
        year += 1
    return MonthCursor(year, month)


def first_weekday(cursor: MonthCursor) -> int:
    """Weekday of the 1st of the month, 0 = Sunday .. 6 = Saturday."""

    return (date(cursor.year, cursor.month, 1).weekday() + 1) % 7


def month_title(cursor: MonthCursor) -> str:
    return f"{calendar.month_name[cursor.month]} {cursor.year}"


def _slot_cell(
    index: int,
    cursor: MonthCursor,
    start: int,
    last_day: int,
    store: PlayCountStore,
    geometry: CellGeometry,
    policy: BucketPolicy,
) -> CalendarCell:
    row, column = divmod(index, GRID_COLUMNS)
    x = column * geometry.pitch
    y = geometry.grid_top + row * geometry.pitch

    day = index - start + 1
    if not 1 <= day <= last_day:
        return CalendarCell(
            index=index, row=row, column=column, x=x, y=y, size=geometry.cell_size
        )

    date_key = encode(cursor.year, cursor.month, day)
    count = store.count_for(date_key)
    bucket = intensity_bucket(count, policy)
    return CalendarCell(
        index=index,
        row=row,
        column=column,
        x=x,
        y=y,
        size=geometry.cell_size,
        date_key=date_key,
        day=day,
        count=count,
        bucket=bucket,
        color=bucket_color(bucket, policy),
    )


def layout(
    cursor: MonthCursor,
    store: PlayCountStore,
    geometry: CellGeometry = CellGeometry(),
    policy: BucketPolicy = BucketPolicy(),
) -> list[CalendarCell]:
    """Build the fixed 6x7 grid of cells for a month.

    Slots before the first weekday and after the last day are empty cells.
    """

    start = first_weekday(cursor)
    last_day = days_in_month(cursor.year, cursor.month)
    return [
        _slot_cell(index, cursor, start, last_day, store, geometry, policy)
        for index in range(GRID_SLOTS)
    ]


def cell_at(
    px: float,
    py: float,
    cursor: MonthCursor,
    store: PlayCountStore,
    geometry: CellGeometry = CellGeometry(),
    policy: BucketPolicy = BucketPolicy(),
) -> CalendarCell | None:
    """Resolve a pointer position to the dated cell under it, if any."""

    if py < geometry.grid_top or px < 0:
        return None

    column = int(px // geometry.pitch)
    row = int((py - geometry.grid_top) // geometry.pitch)
    if column >= GRID_COLUMNS or row >= GRID_ROWS:
        return None

    start = first_weekday(cursor)
    last_day = days_in_month(cursor.year, cursor.month)
    cell = _slot_cell(
        row * GRID_COLUMNS + column, cursor, start, last_day, store, geometry, policy
    )
    if cell.is_empty:
        return None
    return cell


def arrow_rects(width: float, geometry: CellGeometry = CellGeometry()) -> dict[str, Rect]:
    """Month navigation arrows, vertically centered in the header."""

    top = (geometry.header_height - geometry.arrow_size) / 2
    size = geometry.arrow_size
    return {
        "left": Rect(10, top, size, size),
        "right": Rect(width - size - 10, top, size, size),
    }


def arrow_at(
    px: float, py: float, width: float, geometry: CellGeometry = CellGeometry()
) -> int | None:
    """Return -1 for the previous-month arrow, +1 for next, None otherwise."""

    arrows = arrow_rects(width, geometry)
    if arrows["left"].contains(px, py):
        return -1
    if arrows["right"].contains(px, py):
        return 1
    return None
