from sqlalchemy.orm import Session

from app.models.user import User
from app.core.security import hash_password, generate_id


def get_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()


def get_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def create(db: Session, email: str, password: str, *, commit: bool = True) -> User:
    user = User(
        id=generate_id(),
        email=email,
        password_hash=hash_password(password),
    )
    db.add(user)
    if commit:
        db.commit()
        db.refresh(user)
    else:
        db.flush()
    return user


def get_all_ids(db: Session) -> list[str]:
    return [row[0] for row in db.query(User.id).order_by(User.created_at.asc()).all()]


def delete_user(db: Session, user_id: str) -> bool:
    """Delete user and all owned rows (profile, applications, billing via CASCADE)."""
    user = get_by_id(db, user_id)
    if not user:
        return False
    db.delete(user)
    db.commit()
    return True
