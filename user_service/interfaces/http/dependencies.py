from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...application.use_cases.query_logs import LogQueryService
from ...application.use_cases.user_queries import UserQueries
from ...infrastructure.db import get_db
from ...infrastructure.peer_sync import PeerSync
from ...infrastructure.repositories import UserRepository
from ...infrastructure.security import PasswordHasher
from ...infrastructure.store_logger import StoreLogger


def get_store_logger(request: Request) -> StoreLogger:
    # один экземпляр на приложение, создаётся в create_app()
    return request.app.state.store_logger

def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)

def get_user_queries(repo: UserRepository = Depends(get_user_repository)) -> UserQueries:
    return UserQueries(repo)

def get_password_hasher() -> PasswordHasher:
    return PasswordHasher()

def get_peer_sync(logger: StoreLogger = Depends(get_store_logger)) -> PeerSync:
    return PeerSync(logger)

def get_log_queries(logger: StoreLogger = Depends(get_store_logger)) -> LogQueryService:
    return LogQueryService(logger.repo)
