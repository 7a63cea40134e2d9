import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, UploadFile, File, HTTPException
from .errors import NormalizationError
from .logs import setup_logging
from .models import NormalizeResponse, HealthResponse
from .normalize import normalize_bytes

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.environ.get("VIEWING_PERIODS_LOG_LEVEL", "INFO"))
    yield


app = FastAPI(
    title="viewing-periods",
    description="Normalization of heterogeneous viewing-period CSV/TSV exports",
    version="0.1.0",
    lifespan=lifespan,
)

@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}

@app.post("/normalize", response_model=NormalizeResponse)
async def normalize_periods(file: UploadFile = File(...)):
    raw = await file.read()
    try:
        return normalize_bytes(raw, file.filename or "")
    except NormalizationError as exc:
        log.error("normalization of %s failed: %s", file.filename, exc)
        raise HTTPException(status_code=422, detail=str(exc))
