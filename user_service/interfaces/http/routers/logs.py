from datetime import datetime

from fastapi import APIRouter, Depends, Query

from ....application.dto import LogFilters
from ....application.use_cases.query_logs import DEFAULT_LIMIT, LogQueryService
from ..dependencies import get_log_queries
from ..logging_route import LoggingRoute
from ..schemas import Envelope, LogResp, LogStatResp

router = APIRouter(prefix="/logs", tags=["logs"], route_class=LoggingRoute)


@router.get("", response_model=Envelope[list[LogResp]])
def get_logs(
    level: str | None = None,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    ip_address: str | None = Query(None, alias="ipAddress"),
    user_id: str | None = Query(None, alias="userId"),
    correlation_id: str | None = Query(None, alias="correlationId"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=1000),
    skip: int = Query(0, ge=0),
    service: LogQueryService = Depends(get_log_queries),
):
    rows = service.find_logs(LogFilters(
        level=level,
        start_date=start_date,
        end_date=end_date,
        ip_address=ip_address,
        user_id=user_id,
        correlation_id=correlation_id,
        limit=limit,
        skip=skip,
    ))
    return Envelope[list[LogResp]](data=[LogResp.model_validate(r) for r in rows])


@router.get("/stats", response_model=Envelope[list[LogStatResp]])
def get_log_stats(
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    service: LogQueryService = Depends(get_log_queries),
):
    stats = service.get_log_stats(start_date, end_date)
    return Envelope[list[LogStatResp]](data=[LogStatResp.model_validate(s) for s in stats])
