"""
main.py – FastAPI application entry point.

Endpoints
---------
GET  /             – service banner
GET  /health       – liveness / readiness probe with version info
POST /analyze      – upload CSV, run full detection pipeline, return JSON
POST /api/upload   – alias of /analyze

Each request is one independent analysis; nothing is kept between requests.
"""
from __future__ import annotations

import logging
import os
import time
import uuid

from contextlib import asynccontextmanager

from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import MAX_FILE_SIZE_BYTES, MAX_FILE_SIZE_MB
from .engine import detect_fraud
from .formatter import format_output
from .graph_builder import build_graph
from .parser import parse_csv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s │ %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("AegisGraph v%s starting up", __version__)
    yield
    log.info("AegisGraph shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
ALLOWED_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

app = FastAPI(
    title="AegisGraph",
    description="Graph-based detection of money-laundering rings in transaction ledgers",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request-ID middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    start = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    if request.url.path != "/health":
        log.info(
            "%s %s - %d (%.0fms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
    return response


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/", include_in_schema=False)
def root():
    return {"status": "ok", "service": "AegisGraph", "version": __version__}


@app.get("/health")
def health():
    """Liveness / readiness probe."""
    return {
        "status": "healthy",
        "version": __version__,
        "max_file_size_mb": MAX_FILE_SIZE_MB,
    }


@app.post("/analyze")
@app.post("/api/upload", include_in_schema=False)
async def analyze(file: UploadFile = File(...), detail: bool = False):
    """
    Upload a CSV of financial transactions and receive a forensic analysis.

    Expected CSV columns: transaction_id, sender_id, receiver_id, amount, timestamp
    Pass ?detail=true to include the graph visualisation payload.
    """
    # ---- basic validation ----
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are accepted.")

    file_bytes = await file.read()

    if len(file_bytes) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {MAX_FILE_SIZE_MB} MB.",
        )

    start_time = time.perf_counter()

    # ---- 1. Parse ----
    try:
        transactions, parse_stats = parse_csv(file_bytes)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if parse_stats.warnings:
        log.warning("Parse warnings for %s: %s", file.filename, parse_stats.warnings)

    # ---- 2. Build graph ----
    graph = build_graph(transactions)

    # ---- 3. Detect ----
    result = detect_fraud(graph, transactions)

    # ---- 4. Format & return ----
    elapsed = time.perf_counter() - start_time
    output = format_output(
        result, graph, elapsed, include_graph=detail, parse_stats=parse_stats
    )

    log.info(
        "Analysis complete for %s in %.2fs: %d rings, %d flagged / %d accounts",
        file.filename,
        elapsed,
        len(result.fraud_rings),
        len(result.suspicious_accounts),
        graph.node_count,
    )

    return JSONResponse(content=output)
