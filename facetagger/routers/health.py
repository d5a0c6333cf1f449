from fastapi import APIRouter, Request
from tortoise import connections
from tortoise.exceptions import BaseORMException
import time
import psutil
import os

router = APIRouter(prefix="/ops", tags=["ops"])

# Store startup time for uptime calculation
startup_time = time.time()


@router.get("/db-health")
async def db_health():
    """Simple database health check using Tortoise ORM"""
    try:
        await connections.get("default").execute_query("SELECT 1")
        return {"db_ok": True}
    except (BaseORMException, OSError, KeyError) as e:
        return {"db_ok": False, "error": str(e)}


@router.get("/metrics")
async def get_metrics(request: Request):
    """Basic process and pipeline stats for monitoring"""
    memory_info = psutil.virtual_memory()
    pipeline = request.app.state.pipeline
    return {
        "status": "healthy",
        "uptime_seconds": round(time.time() - startup_time, 2),
        "memory_usage_percent": memory_info.percent,
        "memory_available_mb": round(memory_info.available / 1024 / 1024, 2),
        "process_id": os.getpid(),
        "jobs_backend": pipeline.settings.JOBS_BACKEND,
        "timestamp": time.time(),
    }
