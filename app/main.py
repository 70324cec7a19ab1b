# Run from project root: uvicorn app.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.agent.search import is_configured as search_is_configured
from app.api.deps import get_user_store
from app.api.routes import router
from app.core.config import OLLAMA_BASE_URL, OLLAMA_MODEL
from app.core.errors import UserDataError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Model service: %s (model=%s)", OLLAMA_BASE_URL, OLLAMA_MODEL)
    logger.info("Web search: %s", "enabled" if search_is_configured() else "disabled")
    try:
        users = get_user_store().load_users()
        logger.info("User store ready: %d users", len(users))
    except UserDataError as e:
        logger.error("User store unavailable: %s", e.message)
    yield


app = FastAPI(title="Premade Assistant Backend", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


if __name__ == "__main__":
    print("Assistant backend booting...")
