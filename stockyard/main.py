from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .routers import sessions
from .store import get_catalog

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("stockyard")

app = FastAPI(
    title="Stockyard",
    description="Material lot transformations: cutting, joining and angle fabrication",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(sessions.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME}


@app.on_event("startup")
def load_seed_catalog():
    """Load the seed catalog at boot; a bad CATALOG_PATH stops startup."""
    catalog = get_catalog()
    logger.info("Catalog ready: %d standards", len(catalog))
