from sqlalchemy import Column, Integer, String
from app.data.database import Base

class UserModel(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    api_token = Column(String(64), nullable=False, unique=True, index=True)

    # profil, nadpisywany danymi z ostatniego checkoutu
    full_name = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(50), nullable=True)
