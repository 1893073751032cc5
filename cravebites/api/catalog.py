"""FastAPI routes for the catalog (categories and products)"""
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from cravebites.config import settings
from cravebites.db.database import get_db
from cravebites.dependencies import get_media_client
from cravebites.models.schemas import (
    CategoryResponse,
    MessageResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate
)
from cravebites.services.catalog_service import CategoryService, ProductService
from cravebites.services.media_client import MediaUploadClient
from cravebites.api.uploads import upload_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])

CATEGORY_FOLDER = "categories"


def _category_folder() -> str:
    return f"{settings.cloudinary_folder}/{CATEGORY_FOLDER}"


# --- Categories ---

@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    """List all categories, newest first"""
    return CategoryService.get_categories(db)


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    name: str = Form(...),
    description: Optional[str] = Form(None),
    featured: bool = Form(False),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    media: MediaUploadClient = Depends(get_media_client)
):
    """Create a category; the image file is optional"""
    CategoryService.check_name(db, name)
    image_url = settings.default_category_image
    if image is not None and image.filename:
        image_url = (await upload_image(media, image, folder=_category_folder())).url

    return CategoryService.create_category(
        db, name=name, image=image_url, description=description, featured=featured
    )


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    name: str = Form(...),
    description: Optional[str] = Form(None),
    featured: bool = Form(False),
    image_url: Optional[str] = Form(None, alias="image"),
    image_file: Optional[UploadFile] = File(None, alias="imageFile"),
    db: Session = Depends(get_db),
    media: MediaUploadClient = Depends(get_media_client)
):
    """Update a category; keeps the current image unless a new one is given"""
    current = CategoryService.get_category(db, category_id)
    # Upload only once the update is known to be accepted
    CategoryService.check_name(db, name, exclude_id=category_id)
    image = image_url or current.image or settings.default_category_image
    if image_file is not None and image_file.filename:
        image = (await upload_image(media, image_file, folder=_category_folder())).url

    return CategoryService.update_category(
        db, category_id, name=name, image=image, description=description, featured=featured
    )


@router.delete("/categories/{category_id}", response_model=MessageResponse)
def delete_category(category_id: int, db: Session = Depends(get_db)):
    """Delete a category"""
    CategoryService.delete_category(db, category_id)
    return MessageResponse(message="Category deleted successfully")


# --- Products ---

@router.get("/products", response_model=List[ProductResponse])
def list_products(db: Session = Depends(get_db)):
    """List all products, newest first"""
    return ProductService.get_products(db)


@router.get("/products/category/{category_id}", response_model=List[ProductResponse])
def list_products_by_category(category_id: int, db: Session = Depends(get_db)):
    """List the products of one category"""
    return ProductService.get_products(db, category_id=category_id)


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    """Get a specific product by ID"""
    return ProductService.get_product(db, product_id)


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(product: ProductCreate, db: Session = Depends(get_db)):
    """Create a new product"""
    return ProductService.create_product(db, product)


@router.put("/products/{product_id}", response_model=ProductResponse)
def update_product(product_id: int, product: ProductUpdate, db: Session = Depends(get_db)):
    """Update an existing product"""
    return ProductService.update_product(db, product_id, product)


@router.delete("/products/{product_id}", response_model=MessageResponse)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Delete a product"""
    ProductService.delete_product(db, product_id)
    return MessageResponse(message="Product deleted successfully")
