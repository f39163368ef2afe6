"""Health check endpoint for the assetvault API."""

from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel

from assetvault import __version__
from assetvault.api.deps import StoreDep
from assetvault.storage.models import Visibility

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    time: str
    version: str
    partitions: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
def get_health(store: StoreDep) -> HealthResponse:
    """Report liveness and whether both partition directories are present.

    Status is "degraded" when a partition directory is missing.
    """
    partitions = {v.value: store.base_dir(v).is_dir() for v in Visibility}
    return HealthResponse(
        status="ok" if all(partitions.values()) else "degraded",
        time=datetime.now(UTC).isoformat(),
        version=__version__,
        partitions=partitions,
    )
