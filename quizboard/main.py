from fastapi import FastAPI
import logging

from quizboard.api.deps import shutdown_registry
from quizboard.api.routes import router
from quizboard.assets.startup import init_assets_for_app

app = FastAPI(title="quizboard", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    init_assets_for_app()


@app.on_event("shutdown")
async def _shutdown() -> None:
    # Pending roll reveals and feedback timers must not fire after the loop stops.
    shutdown_registry()


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "quizboard", "version": "0.1.0"}
