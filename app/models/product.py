from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Float, DateTime
from app.db.session import Base

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    image = Column(Text, nullable=True)  # external URL or uploaded-file URL
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    category = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
