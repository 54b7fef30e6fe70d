"""
Database 설정 (SQLAlchemy, 기본 SQLite)
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from app.config import get_settings
from app.models import Base

DATABASE_URL = get_settings().database_url


def make_engine(url: str):
    """SQLite이면 스레드 공유 허용 (백그라운드 작업이 별도 스레드에서 실행됨)"""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


# Engine 생성
engine = make_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """
    데이터베이스 초기화

    테이블 생성 (없을 경우)
    """
    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Session:
    """
    데이터베이스 세션 가져오기 (FastAPI Depends용)

    Usage:
        @app.get("/extractions")
        def list_extractions(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
