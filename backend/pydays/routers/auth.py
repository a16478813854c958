from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..progress import ensure_user

router = APIRouter(prefix="/auth", tags=["auth"])

MAX_USERNAME_LENGTH = 128


class User(BaseModel):
	username: str


def get_current_user(x_user: Optional[str] = Header(default=None, alias="X-User"), db: Session = Depends(get_db)) -> User:
	# Authentication happens upstream; the proxy forwards the username in X-User
	username = (x_user or "").strip()
	if not username:
		raise HTTPException(status_code=401, detail="Missing X-User header")
	if len(username) > MAX_USERNAME_LENGTH:
		raise HTTPException(status_code=401, detail="Invalid username")
	ensure_user(db, username)
	db.commit()
	return User(username=username)


@router.get("/me", response_model=User)
async def me(user: User = Depends(get_current_user)):
	return user
