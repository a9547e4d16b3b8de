from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from .models import LogORM
from ..application.dto import LogFilters
from ..application.use_cases.query_logs import ILogRepository

LOG_FIELDS = (
    "id", "level", "message", "context", "method", "url", "status_code", "response_time",
    "ip_address", "user_agent", "user_id", "session_id", "correlation_id",
    "request_body", "query_params", "route_params", "headers", "error", "stack", "timestamp",
)


def to_dict(row: LogORM) -> dict:
    data = {f: getattr(row, f) for f in LOG_FIELDS}
    data["metadata"] = row.extra
    return data


def _in_range(query, start: datetime | None, end: datetime | None):
    if start:
        query = query.filter(LogORM.timestamp >= start)
    if end:
        query = query.filter(LogORM.timestamp <= end)
    return query


class LogRepository(ILogRepository):
    """Журнал запросов: только вставка и чтение, записи не меняются."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def save(self, **fields) -> None:
        # своя сессия на каждую запись: логгер зовут из параллельных запросов
        db: Session = self.session_factory()
        try:
            db.add(LogORM(**fields))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def find(self, filters: LogFilters) -> list[dict]:
        db: Session = self.session_factory()
        try:
            q = db.query(LogORM)
            if filters.level: q = q.filter(LogORM.level == filters.level)
            if filters.ip_address: q = q.filter(LogORM.ip_address == filters.ip_address)
            if filters.user_id: q = q.filter(LogORM.user_id == filters.user_id)
            if filters.correlation_id: q = q.filter(LogORM.correlation_id == filters.correlation_id)
            q = _in_range(q, filters.start_date, filters.end_date)
            rows = (q.order_by(LogORM.timestamp.desc(), LogORM.id.desc())
                     .offset(filters.skip).limit(filters.limit).all())
            return [to_dict(r) for r in rows]
        finally:
            db.close()

    def stats(self, start: datetime | None = None, end: datetime | None = None) -> list[dict]:
        db: Session = self.session_factory()
        try:
            count = func.count(LogORM.id).label("count")
            q = db.query(LogORM.level, count, func.avg(LogORM.response_time).label("avg_response_time"))
            q = _in_range(q, start, end)
            rows = q.group_by(LogORM.level).order_by(count.desc(), LogORM.level).all()
            return [
                {
                    "level": level,
                    "count": n,
                    "avg_response_time": float(avg) if avg is not None else None,
                }
                for level, n, avg in rows
            ]
        finally:
            db.close()
