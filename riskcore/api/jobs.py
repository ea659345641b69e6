"""Run a scheduler job on demand."""
from fastapi import APIRouter, HTTPException

from riskcore.scheduler.jobs import JOBS
from riskcore.scheduler.runner import run_job

router = APIRouter()


@router.post("/{job_name}")
def run(job_name: str):
    if job_name not in JOBS:
        raise HTTPException(status_code=404, detail=f"unknown job {job_name}")
    return {"job": job_name, "result": run_job(job_name)}
