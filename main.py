from contextlib import asynccontextmanager

from fastapi import FastAPI

from spendsense.core.config import settings
from spendsense.core.database import AsyncSessionLocal, init_db
from spendsense.core.dependencies import get_insight_engine
from spendsense.core.logging_config import setup_logging
from spendsense.core.middleware import RequestContextMiddleware
from spendsense.domain.insights.retention import RetentionSweeper
from spendsense.services.scheduler import create_scheduler
from spendsense.web.routes import api, health

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and start the scheduled jobs."""
    await init_db()

    app.state.scheduler = None
    if settings.SCHEDULER_ENABLED:
        engine = get_insight_engine()
        sweeper = RetentionSweeper(AsyncSessionLocal, clock=engine.clock)
        app.state.scheduler = create_scheduler(engine, sweeper)
        app.state.scheduler.start()

    yield

    if app.state.scheduler is not None:
        app.state.scheduler.shutdown(wait=False)


app = FastAPI(
    title=settings.APP_NAME,
    description="Financial insight engine for expense tracking",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(api.router, prefix="/api", tags=["api"])
app.include_router(health.router, tags=["health"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
