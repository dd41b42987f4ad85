from sqlalchemy import select
from sqlalchemy.orm import Session
from app.data.models.user import UserModel

class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def lock_user(self, user_id: int) -> UserModel | None:
        # SELECT ... FOR UPDATE, checkouty jednego usera ida po kolei
        return self.db.execute(
            select(UserModel).where(UserModel.id == user_id).with_for_update()
        ).scalar_one_or_none()

    def get_by_token(self, token: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.api_token == token)
        ).scalar_one_or_none()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_profile(self, user_id: int, profile: dict) -> UserModel | None:
        user = self.get_user(user_id)
        if user:
            for field, value in profile.items():
                setattr(user, field, value)
            self.db.commit()
        return user
