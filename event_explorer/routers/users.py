"""Admin user API routes."""
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from event_explorer.config import settings
from event_explorer.database import get_db
from event_explorer.errors import ConflictError, NotFoundError
from event_explorer.models.user import User
from event_explorer.schemas.user import UserCreate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register a user."""
    if db.query(User).filter(User.email == payload.email).first():
        raise ConflictError(f"User with email {payload.email} already exists")
    user = User(**payload.model_dump())
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %d (%s)", user.id, user.name)
    return user


@router.get("", response_model=list[UserOut])
def list_users(
    ids: list[int] = Query(default=[]),
    offset: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, gt=0),
    db: Session = Depends(get_db),
):
    """List users, optionally restricted to ``ids``."""
    query = db.query(User)
    if ids:
        query = query.filter(User.id.in_(ids))
    return query.order_by(User.id).offset(offset).limit(size).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User with id={user_id} was not found")
    return user
