from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field, ValidationError

from .configuration import MetricsConfig
from .repository import SubscriptionEventRepository, build_repository_from_env
from .samples import export_events_json, sample_events
from .service import InvalidEventBatchError, SubscriptionMetricsService

app = FastAPI(title="Subscription Metrics API", version="0.1.0")
repository: Optional[SubscriptionEventRepository] = build_repository_from_env()
base_config = MetricsConfig.from_env()


class EventsRequest(BaseModel):
    # Entries stay untyped so malformed records reach the event validator and
    # are reported with their index instead of failing request parsing.
    events: List[Any] = Field(default_factory=list)


class MetricsRequest(BaseModel):
    events: Optional[List[Any]] = None
    plans: Optional[Dict[str, float]] = None


class ValidationEntry(BaseModel):
    index: int
    valid: bool
    errors: List[str]


class ValidationResponse(BaseModel):
    valid: bool
    results: List[ValidationEntry]


class MetricsResponse(BaseModel):
    data: Dict[str, Any]
    source: str


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/sample-events")
async def sample_events_endpoint() -> List[Dict[str, Any]]:
    return sample_events()


@app.post("/validate", response_model=ValidationResponse)
async def validate_endpoint(request: EventsRequest) -> ValidationResponse:
    service = SubscriptionMetricsService(base_config)
    results = [
        ValidationEntry(index=index, valid=result.valid, errors=list(result.errors))
        for index, result in enumerate(service.validate(request.events))
    ]
    return ValidationResponse(valid=all(entry.valid for entry in results), results=results)


@app.post("/metrics", response_model=MetricsResponse)
async def metrics_endpoint(request: MetricsRequest) -> MetricsResponse:
    events, source = _load_events(request)
    config = base_config
    if request.plans is not None:
        try:
            config = MetricsConfig(
                plans=request.plans,
                collapse_same_day_change=base_config.collapse_same_day_change,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=[error["msg"] for error in exc.errors()]) from exc

    service = SubscriptionMetricsService(config)
    try:
        report = service.compute(events)
    except InvalidEventBatchError as exc:
        raise HTTPException(status_code=422, detail=exc.as_dict()) from exc
    return MetricsResponse(data=report.as_dict(), source=source)


@app.post("/export")
async def export_endpoint(request: EventsRequest) -> Response:
    return Response(
        content=export_events_json(request.events),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="events.json"'},
    )


def _load_events(request: MetricsRequest) -> Tuple[Sequence[Any], str]:
    if request.events is not None:
        return request.events, "inline"
    if repository is not None:
        return repository.load(), "database"
    raise HTTPException(
        status_code=400,
        detail=(
            "SUBSCRIPTION_METRICS_DATABASE_URL is not configured; "
            "supply events in the request body."
        ),
    )
