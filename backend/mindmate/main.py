import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindmate.core.config import settings
from mindmate.core.database import init_db
from mindmate.core.security import require_secret
from mindmate.api import assistant, directory, relay


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure logging based on debug setting
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s" if settings.debug
        else "%(levelname)-8s %(name)s: %(message)s",
    )

    # The relay cannot authenticate anyone without the shared secret
    require_secret()
    init_db()

    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(relay.router, prefix="/api/relay", tags=["relay"])
app.include_router(directory.router, prefix="/api/directory", tags=["directory"])
app.include_router(assistant.router, prefix="/api/assistant", tags=["assistant"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "app": settings.app_name}
