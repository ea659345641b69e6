"""FastAPI application entry point."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from riskcore.api import actions, enforcement, events, jobs, regions, risk, signals
from riskcore.errors import AdminActionError, RiskCoreError
from riskcore.logger import get_logger
from riskcore.pipeline.emitter import get_writer

logger = get_logger(__name__)

app = FastAPI(
    title="Creator Platform Risk Core API",
    description="Risk signals, decayed risk scores, regional modifiers and payout enforcement",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(signals.router, prefix="/api/signals", tags=["Signals"])
app.include_router(events.router, prefix="/api/events", tags=["Detectors"])
app.include_router(risk.router, prefix="/api/risk", tags=["Risk"])
app.include_router(actions.router, prefix="/api/actions", tags=["Actions"])
app.include_router(regions.router, prefix="/api/regions", tags=["Regions"])
app.include_router(enforcement.router, prefix="/api/enforcement", tags=["Enforcement"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["Jobs"])


@app.exception_handler(AdminActionError)
def admin_action_error(request: Request, exc: AdminActionError):
    logger.warning("admin_action_rejected", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(RiskCoreError)
def risk_core_error(request: Request, exc: RiskCoreError):
    logger.error("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "risk core operation failed"})


@app.on_event("shutdown")
def flush_signal_writer():
    get_writer().drain(timeout=10)


@app.get("/api/health")
def health_check():
    return {"status": "healthy", "service": "creator-risk-core"}
