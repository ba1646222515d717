from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.infrastructure.db.models import User

# pbkdf2_sha256 - no native deps
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

PASSWORD_MIN_LENGTH = 8


class RegistrationError(ValueError):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register_user(db: Session, email: str, password: str, name: str | None = None) -> User:
    """
    Create an account.

    Raises:
        RegistrationError: invalid email / short password / email taken
    """
    email = normalize_email(email)
    if "@" not in email:
        raise RegistrationError("Некорректный email")
    if len(password or "") < PASSWORD_MIN_LENGTH:
        raise RegistrationError(f"Пароль должен быть не короче {PASSWORD_MIN_LENGTH} символов")
    if get_user_by_email(db, email):
        raise RegistrationError("Пользователь с таким email уже существует")

    user = User(email=email, password_hash=hash_password(password), name=(name or "").strip() or None)
    db.add(user)
    db.commit()
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user
