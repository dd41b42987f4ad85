import secrets

from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from app.data.models.user import UserModel
from app.repos.user_repo import UserRepo
from app.domain.errors import NotFoundError
from app.domain.schemas import CheckoutIn, UserCreate, UserCreated, UserRead
from app.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserCreated:
        existing = self.repo.get_user(payload.id)
        if existing:
            raise ValueError("User already exists")

        user = UserModel(
            id=payload.id,
            name=payload.name,
            email=payload.email,
            api_token=secrets.token_urlsafe(32),
        )
        created = self.repo.create_user(user)
        return UserCreated.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return UserRead.model_validate(user)

    def authenticate(self, token: str) -> UserModel | None:
        return self.repo.get_by_token(token)

    def sync_profile(self, user_id: int, request: CheckoutIn) -> None:
        address = request.shipping_address
        self.repo.update_profile(
            user_id,
            {
                "full_name": address.full_name,
                "phone": request.phone,
                "address_line1": address.address_line1,
                "address_line2": address.address_line2,
                "city": address.city,
            },
        )


def sync_profile_in_background(
    session_factory: sessionmaker[Session], user_id: int, request: CheckoutIn
) -> None:
    """
    Background task po odpowiedzi checkout, wlasna sesja bazy.
    Zamowienie juz zapisane wiec blad tylko logujemy.
    """
    db = session_factory()
    try:
        UserService(db).sync_profile(user_id, request)
        logger.info(f"Profile of user {user_id} updated with latest shipping info")
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Profile sync for user {user_id} failed: {e}")
    finally:
        db.close()
