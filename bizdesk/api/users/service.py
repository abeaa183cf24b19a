from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..crud import commit_or_400
from ...core.errors import BadRequestError
from ...core.security import hash_password
from ...models.models import Role, TENDER_STAGES, User, VisibilitySetting

logger = logging.getLogger(__name__)

def find_role(db: Session, name: str) -> Role:
    role = db.query(Role).filter(Role.name == name.lower()).first()
    if role is None:
        raise BadRequestError(f"Role {name} does not exist")
    return role

def create_user(db: Session, username: str, password: str, telegram: Optional[str] = None,
                role_name: str = "user") -> User:
    """Create a user with every tender stage hidden until an admin opens it up."""
    if db.query(User).filter(User.username == username).first():
        raise BadRequestError(f"User {username} already exists")

    role = find_role(db, role_name)
    user = User(
        username=username,
        password_hash=hash_password(password),
        telegram=telegram,
        role_id=role.id,
        is_active=True,
    )
    db.add(user)
    db.flush()

    db.add_all(VisibilitySetting(user_id=user.id, stage=stage, visible=False) for stage in TENDER_STAGES)
    commit_or_400(db, "User")
    db.refresh(user)
    logger.info(f"User {user.id} ({username}) created with role {role.name}")
    return user
