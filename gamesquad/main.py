"""
GameSquad API - presence and shared watchlist for a gaming squad
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import get_settings
from .database import init_db, close_db, AsyncSessionLocal
from .services.record_store import RecordStore
from .services.record_pruner import RecordPruner
from .services.session import SessionCoordinator

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    print("Starting GameSquad API...")

    await init_db()

    app.state.record_store = RecordStore(AsyncSessionLocal)
    app.state.coordinator = SessionCoordinator(outbox_size=settings.outbox_size)

    # Start pruning old watchlist entries
    pruner = RecordPruner(
        app.state.record_store,
        app.state.coordinator,
        max_age_days=settings.prune_after_days,
        interval=settings.prune_interval,
    )
    await pruner.start()

    yield

    # Shutdown
    print("Shutting down GameSquad API...")

    print("[Shutdown] Stopping record pruner...")
    await pruner.stop()

    print("[Shutdown] Closing client connections...")
    await app.state.coordinator.shutdown()

    print("[Shutdown] Closing database connections...")
    await close_db()

    print("GameSquad shutdown complete.")


app = FastAPI(
    title="GameSquad",
    description="Who's online and what we're watching",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

from .routers import records, presence

app.include_router(records.router, prefix="/records", tags=["Records"])
app.include_router(presence.router, tags=["Presence"])


@app.get("/api")
async def api_root():
    return {
        "name": "GameSquad",
        "version": "0.1.0",
        "status": "running"
    }


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gamesquad.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
