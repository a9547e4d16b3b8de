from datetime import datetime, timezone

from ..dto import LogFilters

DEFAULT_LIMIT = 100


class ILogRepository:
    def save(self, **fields) -> None: ...
    def find(self, filters: LogFilters) -> list[dict]: ...
    def stats(self, start: datetime | None = None, end: datetime | None = None) -> list[dict]: ...


def to_store_time(value: datetime | None) -> datetime | None:
    # в хранилище наивное UTC-время
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class LogQueryService:
    def __init__(self, repo: ILogRepository):
        self.repo = repo

    def find_logs(self, filters: LogFilters) -> list[dict]:
        filters = LogFilters(
            level=filters.level,
            start_date=to_store_time(filters.start_date),
            end_date=to_store_time(filters.end_date),
            ip_address=filters.ip_address,
            user_id=filters.user_id,
            correlation_id=filters.correlation_id,
            limit=filters.limit or DEFAULT_LIMIT,
            skip=filters.skip or 0,
        )
        return self.repo.find(filters)

    def get_log_stats(self, start_date: datetime | None = None,
                      end_date: datetime | None = None) -> list[dict]:
        return self.repo.stats(to_store_time(start_date), to_store_time(end_date))
