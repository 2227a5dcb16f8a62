from typing import Optional, List
from sqlalchemy.orm import Session
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductUpdate

# columns that may never be set back to NULL by a partial update
_REQUIRED_FIELDS = {"title", "price"}

#  Create a product
def create_product(db: Session, data: ProductCreate) -> Product:
    product = Product(
        title=data.title,
        image=data.image,
        description=data.description,
        price=data.price,
        category=data.category,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product

#  Get all products, newest first, optionally filtered
def get_products(db: Session, category: Optional[str] = None, query: Optional[str] = None) -> List[Product]:
    q = db.query(Product)
    if category:
        q = q.filter(Product.category == category)
    if query:
        q = q.filter(
            (Product.title.ilike(f"%{query}%")) | (Product.category.ilike(f"%{query}%"))
        )
    return q.order_by(Product.created_at.desc(), Product.id.desc()).all()

#  Get one product
def get_product_by_id(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()

#  Update product
def update_product(db: Session, product_id: int, data: ProductUpdate) -> Optional[Product]:
    product = get_product_by_id(db, product_id)
    if not product:
        return None

    update_data = data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if value is None and key in _REQUIRED_FIELDS:
            continue
        setattr(product, key, value)

    db.commit()
    db.refresh(product)
    return product

#  Delete product
def delete_product(db: Session, product_id: int) -> bool:
    product = get_product_by_id(db, product_id)
    if not product:
        return False

    db.delete(product)
    db.commit()
    return True
