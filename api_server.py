from __future__ import annotations  # FastAPI server exposing adaptive interviews

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import admin_router, get_service, router


logger = logging.getLogger(__name__)

app = FastAPI(title="Adaptive Interview API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(router)
app.include_router(admin_router)


@app.on_event("startup")
def prepare_service() -> None:  # Migrate the database and wire the interview service
    get_service()
    logger.info("Interview service ready")


@app.get("/api/health")
def health() -> dict:  # Liveness probe
    return {"status": "ok"}
