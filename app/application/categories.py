"""
Category & subcategory use cases.

Модуль работает напрямую с ORM. Удаление категории/подкатегории каскадно
удаляет подкатегории, расходы и их occurrences (с предупреждением в лог).
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.application.errors import NotFoundError
from app.infrastructure.db.models import CategoryModel, SubcategoryModel, ExpenseModel, ExpenseOccurrence
from app.utils.validation import validate_name

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 60


class CategoryValidationError(ValueError):
    """Ошибка валидации категории"""
    pass


def _validate_percentage(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        pct = Decimal(str(value))
    except InvalidOperation:
        raise CategoryValidationError("Некорректный процент бюджета")
    if pct < 0 or pct > 100:
        raise CategoryValidationError("Процент бюджета должен быть от 0 до 100")
    return pct


def _validated_name(value: str) -> str:
    try:
        return validate_name(value, NAME_MAX_LENGTH)
    except ValueError as e:
        raise CategoryValidationError(str(e))


def get_owned_category(db: Session, user_id: int, category_id: int) -> CategoryModel:
    category = db.query(CategoryModel).filter(
        CategoryModel.id == category_id,
        CategoryModel.user_id == user_id,
    ).first()
    if not category:
        raise NotFoundError(f"Категория #{category_id} не найдена")
    return category


def get_owned_subcategory(db: Session, user_id: int, subcategory_id: int) -> SubcategoryModel:
    sub = (
        db.query(SubcategoryModel)
        .join(CategoryModel, CategoryModel.id == SubcategoryModel.category_id)
        .filter(
            SubcategoryModel.id == subcategory_id,
            CategoryModel.user_id == user_id,
        )
        .first()
    )
    if not sub:
        raise NotFoundError(f"Подкатегория #{subcategory_id} не найдена")
    return sub


def _delete_expenses(db: Session, expense_ids: List[int]) -> None:
    if not expense_ids:
        return
    db.query(ExpenseOccurrence).filter(
        ExpenseOccurrence.expense_id.in_(expense_ids)
    ).delete(synchronize_session=False)
    db.query(ExpenseModel).filter(
        ExpenseModel.id.in_(expense_ids)
    ).delete(synchronize_session=False)


def _category_expenses_filter(category_id: int):
    """Expenses of the category, including those filed under its subcategories"""
    sub_ids = select(SubcategoryModel.id).where(SubcategoryModel.category_id == category_id)
    return or_(
        ExpenseModel.category_id == category_id,
        ExpenseModel.subcategory_id.in_(sub_ids),
    )


# ============================================================================
# Categories
# ============================================================================


class CreateCategoryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, name: str, budget_percentage=None) -> CategoryModel:
        name = _validated_name(name)
        pct = _validate_percentage(budget_percentage)

        exists = self.db.query(CategoryModel).filter(
            CategoryModel.user_id == user_id,
            CategoryModel.name == name,
        ).first()
        if exists:
            raise CategoryValidationError(f"Категория «{name}» уже существует")

        category = CategoryModel(user_id=user_id, name=name, budget_percentage=pct)
        self.db.add(category)
        self.db.commit()
        return category


class UpdateCategoryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, category_id: int, **changes) -> CategoryModel:
        category = get_owned_category(self.db, user_id, category_id)

        if "name" in changes:
            name = _validated_name(changes["name"])
            clash = self.db.query(CategoryModel).filter(
                CategoryModel.user_id == user_id,
                CategoryModel.name == name,
                CategoryModel.id != category_id,
            ).first()
            if clash:
                raise CategoryValidationError(f"Категория «{name}» уже существует")
            category.name = name
        if "budget_percentage" in changes:
            category.budget_percentage = _validate_percentage(changes["budget_percentage"])

        self.db.commit()
        return category


def get_category_deletion_info(db: Session, user_id: int, category_id: int) -> Dict[str, Any]:
    """What a cascade delete of the category would remove"""
    get_owned_category(db, user_id, category_id)

    subcategories = db.query(SubcategoryModel).filter(
        SubcategoryModel.category_id == category_id
    ).order_by(SubcategoryModel.name).all()
    expenses = db.query(ExpenseModel).filter(
        _category_expenses_filter(category_id),
        ExpenseModel.deleted_at.is_(None),
    ).order_by(ExpenseModel.name).all()

    return {
        "subcategories": [{"id": s.id, "name": s.name} for s in subcategories],
        "expenses": [{"id": e.id, "name": e.name} for e in expenses],
        "total_items": len(subcategories) + len(expenses),
    }


class DeleteCategoryUseCase:
    """Delete category with its subcategories, expenses (incl. soft-deleted) and occurrences"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, category_id: int) -> Dict[str, Any]:
        info = get_category_deletion_info(self.db, user_id, category_id)

        warnings = []
        if info["subcategories"]:
            names = ", ".join(s["name"] for s in info["subcategories"])
            warnings.append(f"{len(info['subcategories'])} subcategories: {names}")
        if info["expenses"]:
            names = ", ".join(e["name"] for e in info["expenses"])
            warnings.append(f"{len(info['expenses'])} expenses: {names}")
        if warnings:
            logger.warning(
                "Cascade delete of category %s (user %s) also removes %s",
                category_id, user_id, " and ".join(warnings),
            )

        expense_ids = [
            row.id for row in
            self.db.query(ExpenseModel.id).filter(_category_expenses_filter(category_id)).all()
        ]
        _delete_expenses(self.db, expense_ids)
        self.db.query(SubcategoryModel).filter(
            SubcategoryModel.category_id == category_id
        ).delete(synchronize_session=False)
        self.db.query(CategoryModel).filter(
            CategoryModel.id == category_id
        ).delete(synchronize_session=False)
        self.db.commit()
        return info


def list_categories(db: Session, user_id: int) -> List[CategoryModel]:
    return db.query(CategoryModel).filter(
        CategoryModel.user_id == user_id
    ).order_by(CategoryModel.name.asc()).all()


# ============================================================================
# Subcategories
# ============================================================================


class CreateSubcategoryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, category_id: int, name: str) -> SubcategoryModel:
        name = _validated_name(name)
        get_owned_category(self.db, user_id, category_id)

        sub = SubcategoryModel(category_id=category_id, name=name)
        self.db.add(sub)
        self.db.commit()
        return sub


class UpdateSubcategoryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, subcategory_id: int, **changes) -> SubcategoryModel:
        sub = get_owned_subcategory(self.db, user_id, subcategory_id)

        if "name" in changes:
            sub.name = _validated_name(changes["name"])
        if "category_id" in changes:
            # Moving to another category: it must belong to the same user
            get_owned_category(self.db, user_id, changes["category_id"])
            sub.category_id = changes["category_id"]
            # expenses follow their subcategory
            self.db.query(ExpenseModel).filter(
                ExpenseModel.subcategory_id == sub.id
            ).update({ExpenseModel.category_id: sub.category_id})

        self.db.commit()
        return sub


def get_subcategory_deletion_info(db: Session, user_id: int, subcategory_id: int) -> Dict[str, Any]:
    get_owned_subcategory(db, user_id, subcategory_id)

    expenses = db.query(ExpenseModel).filter(
        ExpenseModel.subcategory_id == subcategory_id,
        ExpenseModel.deleted_at.is_(None),
    ).order_by(ExpenseModel.name).all()

    return {
        "expenses": [{"id": e.id, "name": e.name} for e in expenses],
        "total_items": len(expenses),
    }


class DeleteSubcategoryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, subcategory_id: int) -> Dict[str, Any]:
        info = get_subcategory_deletion_info(self.db, user_id, subcategory_id)

        if info["expenses"]:
            names = ", ".join(e["name"] for e in info["expenses"])
            logger.warning(
                "Cascade delete of subcategory %s (user %s) also removes %d expenses: %s",
                subcategory_id, user_id, len(info["expenses"]), names,
            )

        expense_ids = [
            row.id for row in
            self.db.query(ExpenseModel.id).filter(ExpenseModel.subcategory_id == subcategory_id).all()
        ]
        _delete_expenses(self.db, expense_ids)
        self.db.query(SubcategoryModel).filter(
            SubcategoryModel.id == subcategory_id
        ).delete(synchronize_session=False)
        self.db.commit()
        return info


def list_subcategories(db: Session, user_id: int, category_id: int | None = None) -> List[SubcategoryModel]:
    query = (
        db.query(SubcategoryModel)
        .join(CategoryModel, CategoryModel.id == SubcategoryModel.category_id)
        .filter(CategoryModel.user_id == user_id)
    )
    if category_id is not None:
        query = query.filter(SubcategoryModel.category_id == category_id)
    return query.order_by(SubcategoryModel.name.asc()).all()
