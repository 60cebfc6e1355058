"""Category API routes: admin creation and public lookup."""
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from event_explorer.config import settings
from event_explorer.database import get_db
from event_explorer.errors import ConflictError, NotFoundError
from event_explorer.models.category import Category
from event_explorer.schemas.category import CategoryCreate, CategoryOut

logger = logging.getLogger(__name__)
admin_router = APIRouter()
router = APIRouter()


@admin_router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    if db.query(Category).filter(Category.name == payload.name).first():
        raise ConflictError(f"Category '{payload.name}' already exists")
    category = Category(name=payload.name)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("Created category %d (%s)", category.id, category.name)
    return category


@router.get("", response_model=list[CategoryOut])
def list_categories(
    offset: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, gt=0),
    db: Session = Depends(get_db),
):
    return db.query(Category).order_by(Category.id).offset(offset).limit(size).all()


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    category = db.get(Category, category_id)
    if not category:
        raise NotFoundError(f"Category with id={category_id} was not found")
    return category
