# agriconnect/users.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .logger import get_logger
from .models import User

logger = get_logger(__name__)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.scalars(select(User).where(User.email == email.strip().lower())).first()


def create_user(
    db: Session,
    *,
    name: str,
    email: str,
    role: str = "farmer",
    region: Optional[str] = None,
) -> User:
    user = User(
        name=name.strip(),
        email=email.strip().lower(),
        role=role,
        region=region.strip().lower() if region and region.strip() else None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created %s account %s (id %s)", user.role, user.email, user.id)
    return user
