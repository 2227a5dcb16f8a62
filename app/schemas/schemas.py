from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

# 👇 Auth

class UserSignup(BaseModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)

class UserLogin(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class UserOut(BaseModel):
    id: int
    username: str
    email: str

    class Config:
        from_attributes = True

class ProfileOut(UserOut):
    role: str
    profileurl: Optional[str] = None

class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)

class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=1)

    class Config:
        populate_by_name = True

# 👇 Account updates (the caller is identified by the bearer token)

class AvatarUpdate(BaseModel):
    profile_url: str = Field(..., alias="profileUrl", min_length=1)

    class Config:
        populate_by_name = True

class UsernameUpdate(BaseModel):
    new_username: str = Field(..., alias="newUsername", min_length=3)

    class Config:
        populate_by_name = True

class EmailUpdate(BaseModel):
    new_email: EmailStr = Field(..., alias="newEmail")

    class Config:
        populate_by_name = True

class PasswordUpdate(BaseModel):
    old_password: str = Field(..., alias="oldPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=1)

    class Config:
        populate_by_name = True

# 👇 Cart

class CartItemCreate(BaseModel):
    product_title: str = Field(..., min_length=1)
    product_price: float = Field(..., ge=0)
    quantity: int = Field(..., gt=0)
    product_image: Optional[str] = None
    product_desc: Optional[str] = None

class CartQuantityUpdate(BaseModel):
    quantity: int = Field(..., ge=0)

class CartItemOut(BaseModel):
    id: int
    user_id: int
    product_title: str
    product_image: Optional[str] = None
    product_desc: Optional[str] = None
    product_price: float
    quantity: int
    added_at: datetime

    class Config:
        from_attributes = True

# 👇 Mail

class PaymentSuccess(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
