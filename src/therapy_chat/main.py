"""Therapy chat server."""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from project root (src/therapy_chat/main.py -> .env)
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)

from therapy_chat.agent import llm_client  # noqa: E402
from therapy_chat.api import router  # noqa: E402
from therapy_chat.db import engine  # noqa: E402
from therapy_chat.logging_config import configure_logging  # noqa: E402
from therapy_chat.stream import event_stream  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Therapy chat server starting")
    yield
    await event_stream.close()
    await llm_client.close()
    await engine.dispose()
    logger.info("Therapy chat server stopped")


app = FastAPI(title="Therapy Chat", version="0.1.0", lifespan=lifespan)

# Allow frontend to connect
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
