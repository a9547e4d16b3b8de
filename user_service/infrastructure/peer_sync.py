import httpx

from ..application.dto import LogContext
from ..config import settings
from ..domain.entities import User, UserRole
from .store_logger import StoreLogger


class PeerSync:
    """Уведомляет соседний сервис о новых модераторах.

    Адрес берётся из PEER_SYNC_URL; без него уведомление не отправляется.
    Сбой соседа не отменяет регистрацию, а только пишется в журнал.
    """

    def __init__(self, logger: StoreLogger, url: str | None = None, timeout: float | None = None,
                 client: httpx.Client | None = None):
        self.logger = logger
        self.url = url if url is not None else settings.PEER_SYNC_URL
        self.timeout = timeout or settings.PEER_SYNC_TIMEOUT
        self.client = client

    def should_notify(self, user: User) -> bool:
        return bool(self.url) and user.role == UserRole.MODERATOR

    def notify(self, user: User, payload: dict, correlation_id: str | None = None) -> bool:
        if not self.should_notify(user):
            return False
        headers = {"X-Correlation-ID": correlation_id} if correlation_id else {}
        try:
            if self.client is not None:
                resp = self.client.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    resp = client.post(self.url, json=payload, headers=headers)
            resp.raise_for_status()
            return True
        except httpx.HTTPError as e:
            self.logger.warn(
                f"Peer sync failed: {e}", "PeerSync",
                LogContext(correlation_id=correlation_id, user_id=str(user.id),
                           metadata={"url": self.url}),
            )
            return False
