from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

# 👇 Base structure for a product (common fields)
class ProductBase(BaseModel):
    title: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None

# 👇 This is what the admin sends to create a product
class ProductCreate(ProductBase):
    pass

# 👇 This is what the API returns when fetching products
class ProductOut(ProductBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True

# 👇 This is used for updating a product (only sent fields change)
class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
