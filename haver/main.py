from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from haver.config import settings
from haver.infra.db import engine
from haver.infra.models import Base

from haver.api.routers.health import router as health_router
from haver.api.routers.transactions import router as transactions_router
from haver.api.routers.receipts import router as receipts_router
from haver.api.routers.sales import router as sales_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Haver API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

logger.info("[CORS] allow_origins = %s", settings.allowed_origins)


@app.on_event("startup")
def _startup() -> None:
    logger.info("[startup] creating tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("[startup] tables created/checked")


app.include_router(health_router, tags=["health"])
app.include_router(transactions_router, prefix="/transactions", tags=["transactions"])
app.include_router(receipts_router, prefix="/receipts", tags=["receipts"])
app.include_router(sales_router, prefix="/sales", tags=["sales"])
