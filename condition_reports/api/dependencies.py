from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from ..config import SessionLocal
from ..repositories import Repositories, build_repositories


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_repositories(db: Session = Depends(get_db)) -> Repositories:
    return build_repositories(db)
