import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from app.schemas.schemas import (
    UserSignup,
    UserLogin,
    UserOut,
    ProfileOut,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    AvatarUpdate,
    UsernameUpdate,
    EmailUpdate,
    PasswordUpdate,
)
from app.db.deps import get_db, get_current_user, get_email_service
from app.crud import user as crud_user
from app.core.config import settings
from app.core.security import verify_password, create_access_token
from app.models.models import User
from app.services.email_service import EmailDeliveryError, EmailService

logger = logging.getLogger(__name__)

router = APIRouter()

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."
INVALID_RESET_TOKEN = "Password reset token is invalid or has expired."
INVALID_CREDENTIALS = "Invalid email or password"

# ==========================
# Authentication
# ==========================

@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    data: UserSignup,
    db: Session = Depends(get_db),
    mail: EmailService = Depends(get_email_service),
):
    if crud_user.get_user_by_email(db, data.email):
        raise HTTPException(status_code=409, detail="User already exists. Please login.")

    try:
        new_user = crud_user.create_user(db, username=data.username, email=data.email, password=data.password)
    except IntegrityError:
        # lost a race with a concurrent signup for the same email
        db.rollback()
        raise HTTPException(status_code=409, detail="User already exists. Please login.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Signup failed: {e}")
        raise HTTPException(status_code=500, detail="Signup failed")

    # Welcome email is best-effort: the account stays created if delivery fails
    try:
        mail.send_welcome(new_user.username, new_user.email)
    except EmailDeliveryError as e:
        logger.warning(f"Welcome email failed for user {new_user.id}: {e}")

    logger.info(f"User {new_user.id} signed up")
    return {
        "message": "Signup successful",
        "user": UserOut.model_validate(new_user),
    }

@router.post("/login")
def login(data: UserLogin, db: Session = Depends(get_db)):
    user = crud_user.get_user_by_email(db, data.email)

    # Unknown email and wrong password are deliberately indistinguishable
    if not user or not verify_password(data.password, user.password):
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    token = create_access_token(user.id, user.role)
    return {
        "message": "Login successful",
        "token": token,
        "user": ProfileOut.model_validate(user),
    }

@router.post("/logout")
def logout(user: User = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy
    logger.info(f"User {user.id} logged out")
    return {"message": "Logged out successfully"}

@router.get("/profile", response_model=ProfileOut)
def get_profile(user: User = Depends(get_current_user)):
    return user

# ==========================
# Password reset
# ==========================

@router.post("/forgot-password")
def forgot_password(
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mail: EmailService = Depends(get_email_service),
):
    user = crud_user.get_user_by_email(db, data.email)
    if not user:
        return {"message": FORGOT_PASSWORD_MESSAGE}

    try:
        token = crud_user.issue_reset_token(db, user, settings.RESET_TOKEN_EXPIRE_MINUTES)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Could not store reset token for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to send password reset email.")

    try:
        mail.send_password_reset(user.email, token)
        logger.info(f"Password reset email sent for user {user.id}")
    except EmailDeliveryError as e:
        # Same response as the happy path so the endpoint never reveals which emails exist
        logger.error(f"Password reset email failed for user {user.id}: {e}")

    return {"message": FORGOT_PASSWORD_MESSAGE}

@router.post("/reset-password")
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        updated = crud_user.reset_password_with_token(db, data.token, data.new_password)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Reset password failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to reset password.")

    if not updated:
        raise HTTPException(status_code=400, detail=INVALID_RESET_TOKEN)
    return {"message": "Password has been reset successfully."}

# ==========================
# Account updates
# ==========================

@router.put("/user/update-avatar")
def update_avatar(
    data: AvatarUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    profile_url = data.profile_url
    if not (profile_url.startswith("data:image/") or profile_url.startswith(("http://", "https://"))):
        raise HTTPException(status_code=400, detail="Avatar must be an image data URL or an http(s) URL.")
    if len(profile_url) > settings.MAX_AVATAR_LENGTH:
        raise HTTPException(status_code=400, detail="Image too large.")

    try:
        crud_user.update_user_fields(db, user, profileurl=profile_url)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Avatar update failed for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update avatar.")
    return {"message": "Avatar updated successfully.", "profileurl": user.profileurl}

@router.put("/user/update-username")
def update_username(
    data: UsernameUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if crud_user.username_taken(db, data.new_username, exclude_user_id=user.id):
        raise HTTPException(status_code=409, detail="Username already taken.")

    try:
        crud_user.update_user_fields(db, user, username=data.new_username)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Username update failed for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update username.")
    return {"message": "Username updated successfully.", "username": user.username}

@router.put("/user/update-email")
def update_email(
    data: EmailUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if crud_user.email_taken(db, data.new_email, exclude_user_id=user.id):
        raise HTTPException(status_code=409, detail="Email already in use.")

    try:
        crud_user.update_user_fields(db, user, email=data.new_email)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already in use.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Email update failed for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update email.")
    return {"message": "Email updated successfully.", "email": user.email}

@router.put("/user/update-password")
def update_password(
    data: PasswordUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not verify_password(data.old_password, user.password):
        raise HTTPException(status_code=401, detail="Old password is incorrect.")

    try:
        crud_user.set_password(db, user, data.new_password)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Password update failed for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update password.")
    return {"message": "Password updated successfully."}
