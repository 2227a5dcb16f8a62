import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.schemas.schemas import CartItemCreate, CartItemOut, CartQuantityUpdate
from app.crud import cart
from app.db.deps import get_db, get_current_user
from app.models.models import User

logger = logging.getLogger(__name__)

router = APIRouter()

CART_ITEM_NOT_FOUND = "Cart item not found or does not belong to user."

@router.post("/add", status_code=status.HTTP_201_CREATED)
def add_item(
    data: CartItemCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        item, created = cart.add_to_cart(
            db,
            user_id=user.id,
            product_title=data.product_title,
            product_price=data.product_price,
            quantity=data.quantity,
            product_image=data.product_image,
            product_desc=data.product_desc,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Add to cart failed for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Server error while adding to cart.")

    if created:
        message = "Product added to cart successfully!"
    else:
        response.status_code = status.HTTP_200_OK
        message = "Product quantity updated in cart successfully!"
    return {"message": message, "cartItem": CartItemOut.model_validate(item)}

@router.get("")
def get_cart_items(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        items = cart.get_cart(db, user.id)
    except SQLAlchemyError as e:
        logger.error(f"Retrieving cart failed for user {user.id}: {e}")
        raise HTTPException(status_code=500, detail="Server error while retrieving cart.")
    return {
        "message": "Cart items retrieved successfully!",
        "cartItems": [CartItemOut.model_validate(item) for item in items],
    }

@router.delete("/remove/{cart_item_id}")
def remove_item(cart_item_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        item = cart.remove_cart_item(db, user.id, cart_item_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Removing cart item {cart_item_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Server error while removing item from cart.")

    if not item:
        raise HTTPException(status_code=404, detail=CART_ITEM_NOT_FOUND)
    return {"message": "Cart item removed successfully!", "removedItem": CartItemOut.model_validate(item)}

@router.put("/update/{cart_item_id}")
def update_item_quantity(
    cart_item_id: int,
    data: CartQuantityUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        item = cart.set_cart_quantity(db, user.id, cart_item_id, data.quantity)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Updating cart item {cart_item_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Server error while updating cart item.")

    if not item:
        raise HTTPException(status_code=404, detail=CART_ITEM_NOT_FOUND)
    message = "Cart item removed successfully!" if data.quantity == 0 else "Cart item quantity updated successfully!"
    return {"message": message, "cartItem": CartItemOut.model_validate(item)}
