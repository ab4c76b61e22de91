from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from fitness_backend.auth.dependencies import get_current_user
from fitness_backend.database import get_db
from fitness_backend.models.user import User
from fitness_backend.services import directory

router = APIRouter(tags=['auth'])


class PrincipalResponse(BaseModel):
    user_id: int
    email: str
    role: str
    member_id: int | None = None


@router.get('/me', response_model=PrincipalResponse)
def read_current_principal(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    member = None if current_user.is_admin else directory.get_member_for_user(db, current_user.id)
    return PrincipalResponse(
        user_id=current_user.id,
        email=current_user.email,
        role=current_user.role,
        member_id=member.id if member else None,
    )
