"""
Health Check Router
Liveness and document-store reachability
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from expense_api.core.config import settings
from expense_api.db import dynamo

router = APIRouter()


@router.get("/health")
def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
def store_status():
    """Check that the expenses table answers a one-item scan."""
    connected = dynamo.ping()
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "dynamodb": {
                "connected": connected,
                "table": settings.DYNAMO_EXPENSES_TABLE,
                "region": settings.DYNAMO_REGION,
            },
        },
        "overall_status": "healthy" if connected else "degraded",
    }
