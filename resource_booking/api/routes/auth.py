from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ...core import security
from ...core.clock import utc_now
from ...db.session import get_db
from ...db import models, schemas
from .. import deps


router = APIRouter(prefix="/auth", tags=["auth"])


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: schemas.User


@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = db.query(models.User).filter_by(email=form_data.username).first()
    if (
        not user
        or not user.is_active
        or not security.verify_password(form_data.password, user.password_hash)
    ):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")
    token = security.create_access_token(user.id, user.role.value)
    user.last_login_at = utc_now()
    db.commit()
    return TokenResponse(access_token=token, user=schemas.User.model_validate(user))


@router.get("/me", response_model=schemas.User)
def me(current: models.User = Depends(deps.get_current_user)):
    return current
