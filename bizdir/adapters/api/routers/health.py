# bizdir/adapters/api/routers/health.py
from fastapi import APIRouter, Depends, status, Response
from dependency_injector.wiring import inject, Provide
from typing import Dict
import structlog

from bizdir.shared.config import settings
from bizdir.shared.container import Container
from bizdir.core.ports.location_directory import ILocationDirectory

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["System"])

@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_probe():
    """
    K8s Liveness Probe.
    Returns 200 OK if the service is operational.
    """
    return {"status": "ok", "service": settings.APP_NAME}

@router.get("/ready", status_code=status.HTTP_200_OK)
@inject
async def readiness_probe(
    response: Response,
    directory: ILocationDirectory = Depends(Provide[Container.directory]),
) -> Dict[str, str]:
    """
    K8s Readiness Probe.
    Checks that the directory backend answers a country listing.
    Returns 503 Service Unavailable when it does not.
    """
    health_status = {"directory": "down"}

    try:
        await directory.fetch_countries()
        health_status["directory"] = "up"
    except Exception as e:
        logger.error("health_check_failed", component="directory", error=str(e))

    if health_status["directory"] != "up":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("readiness_probe_failed", status=health_status)

    return health_status
