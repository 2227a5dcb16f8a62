import logging
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional

from app.schemas.product import ProductCreate, ProductOut, ProductUpdate
from app.crud import product as crud_product
from app.core.config import settings
from app.db.deps import get_db, get_image_storage, require_admin
from app.models.models import User
from app.services.image_service import ImageUploadError, InvalidImageError, S3ImageStorage

logger = logging.getLogger(__name__)

router = APIRouter()

PRODUCT_NOT_FOUND = "Product not found."

@router.get("")
def list_products(
    category: Optional[str] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        products = crud_product.get_products(db, category=category, query=q)
    except SQLAlchemyError as e:
        logger.error(f"Fetching products failed: {e}")
        raise HTTPException(status_code=500, detail="Server error while fetching products.")

    if not products:
        return {"message": "No products available at the moment.", "products": []}
    logger.info(f"Fetched {len(products)} products")
    return {
        "message": "Products retrieved successfully!",
        "products": [ProductOut.model_validate(p) for p in products],
    }

@router.post("/upload-image", status_code=status.HTTP_201_CREATED)
async def upload_product_image(
    file: UploadFile = File(...),
    admin: User = Depends(require_admin),
    storage: S3ImageStorage = Depends(get_image_storage),
):
    """Upload an image and get back the URL to use as a product's `image`"""
    if file.content_type not in settings.allowed_image_types:
        raise HTTPException(status_code=400, detail=f"Unsupported image type: {file.content_type}")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    if len(content) > settings.MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail="Image too large.")

    try:
        url = storage.upload_product_image(content, file.filename)
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ImageUploadError as e:
        logger.error(f"Product image upload by admin {admin.id} failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to upload image.")
    return {"message": "Image uploaded successfully!", "image_url": url}

@router.get("/{product_id}")
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        product = crud_product.get_product_by_id(db, product_id)
    except SQLAlchemyError as e:
        logger.error(f"Fetching product {product_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Server error while fetching product details.")

    if not product:
        raise HTTPException(status_code=404, detail=PRODUCT_NOT_FOUND)
    return {"message": "Product retrieved successfully!", "product": ProductOut.model_validate(product)}

@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        product = crud_product.create_product(db, data)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Creating product failed: {e}")
        raise HTTPException(status_code=500, detail="Server error while adding product.")

    logger.info(f"Admin {admin.id} added product {product.id}")
    return {"message": "Product added successfully!", "product": ProductOut.model_validate(product)}

@router.put("/{product_id}")
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        product = crud_product.update_product(db, product_id, data)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Updating product {product_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Server error while updating product.")

    if not product:
        raise HTTPException(status_code=404, detail=PRODUCT_NOT_FOUND)
    return {"message": "Product updated successfully!", "product": ProductOut.model_validate(product)}

@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        deleted = crud_product.delete_product(db, product_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deleting product {product_id} failed: {e}")
        raise HTTPException(status_code=500, detail="Server error while deleting product.")

    if not deleted:
        raise HTTPException(status_code=404, detail=PRODUCT_NOT_FOUND)
    logger.info(f"Admin {admin.id} deleted product {product_id}")
    return {"message": "Product deleted successfully!"}
