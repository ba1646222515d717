"""
Category / subcategory API endpoints
"""
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.infrastructure.db.models import User, CategoryModel, SubcategoryModel
from app.application.categories import (
    CreateCategoryUseCase, UpdateCategoryUseCase, DeleteCategoryUseCase,
    CreateSubcategoryUseCase, UpdateSubcategoryUseCase, DeleteSubcategoryUseCase,
    get_category_deletion_info, get_subcategory_deletion_info,
    list_categories, list_subcategories,
)


router = APIRouter(prefix="/api/v1/categories", tags=["categories"])
subcategories_router = APIRouter(prefix="/api/v1/subcategories", tags=["categories"])


# === Request/Response models ===

class CreateCategoryRequest(BaseModel):
    name: str
    budget_percentage: float | str | None = None


class UpdateCategoryRequest(BaseModel):
    name: str | None = None
    budget_percentage: float | str | None = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    budget_percentage: float | None


class CreateSubcategoryRequest(BaseModel):
    name: str


class UpdateSubcategoryRequest(BaseModel):
    name: str | None = None
    category_id: int | None = None


class SubcategoryResponse(BaseModel):
    id: int
    name: str
    category_id: int


def _category_response(c: CategoryModel) -> CategoryResponse:
    pct = c.budget_percentage
    return CategoryResponse(
        id=c.id,
        name=c.name,
        budget_percentage=float(pct) if isinstance(pct, Decimal) else pct,
    )


def _subcategory_response(s: SubcategoryModel) -> SubcategoryResponse:
    return SubcategoryResponse(id=s.id, name=s.name, category_id=s.category_id)


# === Categories ===

@router.post("/", response_model=CategoryResponse, status_code=201)
def create_category(
    req: CreateCategoryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Создать категорию"""
    category = CreateCategoryUseCase(db).execute(
        user_id=user.id,
        name=req.name,
        budget_percentage=req.budget_percentage,
    )
    return _category_response(category)


@router.get("/", response_model=list[CategoryResponse])
def get_categories(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Список категорий по названию"""
    return [_category_response(c) for c in list_categories(db, user.id)]


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    req: UpdateCategoryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = req.model_dump(exclude_unset=True)
    category = UpdateCategoryUseCase(db).execute(user.id, category_id, **changes)
    return _category_response(category)


@router.get("/{category_id}/deletion-info")
def category_deletion_info(
    category_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Что будет удалено вместе с категорией"""
    return get_category_deletion_info(db, user.id, category_id)


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Удалить категорию каскадно (подкатегории, расходы, occurrences)"""
    info = DeleteCategoryUseCase(db).execute(user.id, category_id)
    return {"status": "deleted", "removed": info}


@router.post("/{category_id}/subcategories", response_model=SubcategoryResponse, status_code=201)
def create_subcategory(
    category_id: int,
    req: CreateSubcategoryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    sub = CreateSubcategoryUseCase(db).execute(user.id, category_id, req.name)
    return _subcategory_response(sub)


# === Subcategories ===

@subcategories_router.get("/", response_model=list[SubcategoryResponse])
def get_subcategories(
    category_id: int | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [_subcategory_response(s) for s in list_subcategories(db, user.id, category_id)]


@subcategories_router.patch("/{subcategory_id}", response_model=SubcategoryResponse)
def update_subcategory(
    subcategory_id: int,
    req: UpdateSubcategoryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = req.model_dump(exclude_unset=True)
    sub = UpdateSubcategoryUseCase(db).execute(user.id, subcategory_id, **changes)
    return _subcategory_response(sub)


@subcategories_router.get("/{subcategory_id}/deletion-info")
def subcategory_deletion_info(
    subcategory_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_subcategory_deletion_info(db, user.id, subcategory_id)


@subcategories_router.delete("/{subcategory_id}")
def delete_subcategory(
    subcategory_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    info = DeleteSubcategoryUseCase(db).execute(user.id, subcategory_id)
    return {"status": "deleted", "removed": info}
