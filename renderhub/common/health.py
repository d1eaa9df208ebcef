"""Health probe."""
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(tags=["system"])


class HealthStatus(BaseModel):
    success: bool = True
    message: str = "Server is running"
    timestamp: str


@router.get("/health", response_model=HealthStatus)
def health_check():
    return HealthStatus(timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"))
