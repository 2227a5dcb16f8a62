from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from app.models import models

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

def _upsert_statement(db: Session, values: dict):
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Cart upsert is not supported on {dialect}")

    stmt = insert(models.CartItem).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=["user_id", "product_title"],
        set_={
            "quantity": models.CartItem.quantity + stmt.excluded.quantity,
            "added_at": values["added_at"],
        },
    )

def add_to_cart(
    db: Session,
    user_id: int,
    product_title: str,
    product_price: float,
    quantity: int,
    product_image: Optional[str] = None,
    product_desc: Optional[str] = None,
) -> Tuple[models.CartItem, bool]:
    """
    Insert the item, or add `quantity` to the existing row for
    (user_id, product_title), in a single statement.
    Returns (item, created).
    """
    values = {
        "user_id": user_id,
        "product_title": product_title,
        "product_image": product_image,
        "product_desc": product_desc,
        "product_price": product_price,
        "quantity": quantity,
        "added_at": datetime.utcnow(),
    }
    stmt = _upsert_statement(db, values).returning(models.CartItem)
    item = db.scalars(stmt, execution_options={"populate_existing": True}).one()
    # stored quantities are always positive, so only a fresh row equals the input
    created = item.quantity == quantity
    db.commit()
    db.refresh(item)
    return item, created

def get_cart(db: Session, user_id: int) -> List[models.CartItem]:
    return (
        db.query(models.CartItem)
        .filter(models.CartItem.user_id == user_id)
        .order_by(models.CartItem.added_at.desc(), models.CartItem.id.desc())
        .all()
    )

def get_cart_item(db: Session, user_id: int, cart_item_id: int) -> Optional[models.CartItem]:
    return db.query(models.CartItem).filter(
        models.CartItem.id == cart_item_id,
        models.CartItem.user_id == user_id
    ).first()

def remove_cart_item(db: Session, user_id: int, cart_item_id: int) -> Optional[models.CartItem]:
    item = get_cart_item(db, user_id, cart_item_id)
    if not item:
        return None
    db.delete(item)
    db.commit()
    return item

def set_cart_quantity(db: Session, user_id: int, cart_item_id: int, quantity: int) -> Optional[models.CartItem]:
    """Replace the stored quantity; 0 removes the row. Negative values are rejected by the caller."""
    if quantity == 0:
        return remove_cart_item(db, user_id, cart_item_id)

    item = get_cart_item(db, user_id, cart_item_id)
    if not item:
        return None
    item.quantity = quantity
    item.added_at = datetime.utcnow()
    db.commit()
    db.refresh(item)
    return item
