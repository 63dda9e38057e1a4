from fastapi import FastAPI
import logging

from inlinegames.api.routes import router

app = FastAPI(title="inlinegames", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "inlinegames", "version": "0.1.0"}
