from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.data.database import get_db
from app.data.models.user import UserModel
from app.api.deps import get_current_user
from app.domain.errors import NotFoundError
from app.services.user_service import UserService
from app.domain.schemas import UserCreate, UserCreated, UserRead

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=UserCreated, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.create_user(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/me", response_model=UserRead)
def get_me(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_user(user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
