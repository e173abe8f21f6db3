from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from postboard.database import get_db
from postboard.services import categories as category_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


class CategoryCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


@router.get("")
def list_categories(db: Session = Depends(get_db)):
    return [category_service.serialize_category(c) for c in category_service.list_categories(db)]


@router.get("/{category_id}")
def get_category(category_id: int, db: Session = Depends(get_db)):
    return category_service.serialize_category(category_service.get_category(db, category_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(data: CategoryCreate, db: Session = Depends(get_db)):
    """
    Create a category. The slug is always derived from the name, and both
    must be unique (409 otherwise).
    """
    category = category_service.create_category(db, data.name, data.description)
    return {"message": "Category created successfully", "data": category_service.serialize_category(category)}


@router.put("/{category_id}")
def update_category(category_id: int, data: CategoryUpdate, db: Session = Depends(get_db)):
    category = category_service.update_category(db, category_id, data.model_dump(exclude_unset=True))
    return {
        "message": f"Category {category_id} updated successfully",
        "data": category_service.serialize_category(category),
    }


@router.delete("/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db)):
    """🗑️ Hard delete. Posts in the category are not removed or re-filed."""
    category_service.delete_category(db, category_id)
    return {"message": f"Category {category_id} deleted successfully"}
