"""
Monthly salary (income) - one figure per user per month
"""
from sqlalchemy.orm import Session

from app.infrastructure.db.models import SalaryModel
from app.utils.validation import parse_amount

YEAR_MIN = 2020
YEAR_MAX = 2030


class SalaryValidationError(ValueError):
    pass


class SetSalaryUseCase:
    """Upsert salary for (user_id, year, month)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, year: int, month: int, amount) -> SalaryModel:
        try:
            value = parse_amount(amount)
        except ValueError as e:
            raise SalaryValidationError(str(e))
        if value <= 0:
            raise SalaryValidationError("Сумма зарплаты должна быть больше 0")
        if not YEAR_MIN <= year <= YEAR_MAX:
            raise SalaryValidationError(f"Год должен быть от {YEAR_MIN} до {YEAR_MAX}")
        if not 1 <= month <= 12:
            raise SalaryValidationError("Месяц должен быть от 1 до 12")

        salary = self.db.query(SalaryModel).filter(
            SalaryModel.user_id == user_id,
            SalaryModel.year == year,
            SalaryModel.month == month,
        ).with_for_update().first()

        if salary:
            salary.amount = value
        else:
            salary = SalaryModel(user_id=user_id, year=year, month=month, amount=value)
            self.db.add(salary)

        self.db.commit()
        return salary


def get_salary(db: Session, user_id: int, year: int, month: int) -> float | None:
    """Salary amount as float, None if not set"""
    salary = db.query(SalaryModel).filter(
        SalaryModel.user_id == user_id,
        SalaryModel.year == year,
        SalaryModel.month == month,
    ).first()
    if not salary:
        return None
    return float(salary.amount)
