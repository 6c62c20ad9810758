import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI

from playcalendar.api.routes.calendar import router
from playcalendar.core.observability import configure_logging
from playcalendar.core.observability import init_sentry
from playcalendar.services.widget_service import build_widget_state
from playcalendar.services.widget_service import run_periodic_refresh
from playcalendar.settings import Settings


logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI app serving the play calendar to a host panel."""

    app_settings = app_settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Startup refresh runs first, then hourly.
        refresher = asyncio.create_task(
            run_periodic_refresh(
                app.state.widget, app_settings.refresh_interval_seconds
            )
        )
        try:
            yield
        finally:
            pending = [refresher, *app.state.widget.tasks]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    app = FastAPI(lifespan=lifespan)
    app.state.widget = build_widget_state(app_settings)
    app.state.settings = app_settings
    app.include_router(router)
    cursor = app.state.widget.cursor
    logger.info("Play calendar ready for %d-%02d", cursor.year, cursor.month)
    return app
