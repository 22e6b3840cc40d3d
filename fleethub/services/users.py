from typing import Any, Dict, Optional

import structlog
from sqlalchemy.orm import Session

from ..auth.security import get_password_hash, verify_password
from ..models.models import User
from .store import Store


logger = structlog.get_logger(__name__)


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def create_user(db: Session, fields: Dict[str, Any]) -> User:
    data = dict(fields)
    data["password_hash"] = get_password_hash(data.pop("password"))
    user = Store(db).users.create(data)
    logger.info("user_created", user_id=user.id, username=user.username, role=user.role)
    return user


def update_user(db: Session, user_id: int, fields: Dict[str, Any]) -> Optional[User]:
    data = dict(fields)
    password = data.pop("password", None)
    if password:
        data["password_hash"] = get_password_hash(password)
    return Store(db).users.update(user_id, data)


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    user = get_user_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user
