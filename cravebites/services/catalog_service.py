"""Catalog business logic (categories and products)"""
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from opentelemetry import trace
import logging

from cravebites.db.database import is_valid_id
from cravebites.errors import DuplicateKey, InvalidState, NotFound, ValidationError
from cravebites.models.catalog import Category, Product
from cravebites.models.schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class CategoryService:
    """Category service for business logic"""

    @staticmethod
    def get_category(db: Session, category_id: int) -> Category:
        if not is_valid_id(category_id):
            raise NotFound("Category", category_id)
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFound("Category", category_id)
        return category

    @staticmethod
    def get_categories(db: Session) -> List[Category]:
        """All categories, newest first"""
        return db.query(Category).order_by(Category.created_at.desc(), Category.id.desc()).all()

    @staticmethod
    def check_name(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
        """Stripped ``name``, rejected when blank or taken by another category"""
        name = (name or "").strip()
        if not name:
            raise ValidationError(["Category name is required"])
        query = db.query(Category).filter(Category.name == name)
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        if query.first():
            raise DuplicateKey("Category with this name already exists")
        return name

    @staticmethod
    def create_category(
        db: Session,
        name: str,
        image: str,
        description: Optional[str] = None,
        featured: bool = False
    ) -> Category:
        with tracer.start_as_current_span("category_service.create_category"):
            category = Category(
                name=CategoryService.check_name(db, name),
                description=(description or "").strip(),
                featured=featured,
                image=image
            )
            db.add(category)
            db.commit()
            db.refresh(category)

            logger.info(f"Created category {category.id}: {category.name}")
            return category

    @staticmethod
    def update_category(
        db: Session,
        category_id: int,
        name: str,
        image: str,
        description: Optional[str] = None,
        featured: bool = False
    ) -> Category:
        category = CategoryService.get_category(db, category_id)
        category.name = CategoryService.check_name(db, name, exclude_id=category_id)
        category.description = (description or "").strip()
        category.featured = featured
        category.image = image

        db.commit()
        db.refresh(category)
        return category

    @staticmethod
    def delete_category(db: Session, category_id: int) -> None:
        """Delete a category (hard delete); refused while products still use it"""
        category = CategoryService.get_category(db, category_id)
        in_use = db.query(Product.id).filter(Product.category_id == category_id).count()
        if in_use:
            raise InvalidState(f"Category '{category.name}' still has {in_use} products")

        db.delete(category)
        db.commit()
        logger.info(f"Deleted category {category_id}")


class ProductService:
    """Product service for business logic"""

    @staticmethod
    def _query(db: Session):
        return db.query(Product).options(joinedload(Product.category)).execution_options(
            populate_existing=True
        )

    @staticmethod
    def get_product(db: Session, product_id: int) -> Product:
        """Get product by ID"""
        with tracer.start_as_current_span("product_service.get_product") as span:
            span.set_attribute("product.id", product_id)
            if not is_valid_id(product_id):
                raise NotFound("Product", product_id)
            product = ProductService._query(db).filter(Product.id == product_id).first()
            if not product:
                raise NotFound("Product", product_id)
            return product

    @staticmethod
    def get_products(db: Session, category_id: Optional[int] = None) -> List[Product]:
        """All products (optionally of one category), newest first"""
        query = ProductService._query(db)
        if category_id is not None:
            if not is_valid_id(category_id):
                return []
            query = query.filter(Product.category_id == category_id)
        return query.order_by(Product.created_at.desc(), Product.id.desc()).all()

    @staticmethod
    def _check_category(db: Session, category_id: int) -> None:
        if not is_valid_id(category_id) or not db.query(Category.id).filter(Category.id == category_id).first():
            raise ValidationError(["Invalid category"])

    @staticmethod
    def _check_name(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
        name = name.strip()
        query = db.query(Product.id).filter(Product.name == name)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise DuplicateKey("Product with this name already exists")
        return name

    @staticmethod
    def create_product(db: Session, product_data: ProductCreate) -> Product:
        """Create new product"""
        with tracer.start_as_current_span("product_service.create_product"):
            ProductService._check_category(db, product_data.category)
            data = product_data.model_dump(exclude={"category"})
            data["name"] = ProductService._check_name(db, product_data.name)

            product = Product(category_id=product_data.category, **data)
            db.add(product)
            db.commit()

            logger.info(f"Created product {product.id}: {product.name}")
            return ProductService.get_product(db, product.id)

    @staticmethod
    def update_product(db: Session, product_id: int, product_data: ProductUpdate) -> Product:
        """Update existing product"""
        product = ProductService.get_product(db, product_id)

        update_data = product_data.model_dump(exclude_unset=True)
        if "category" in update_data:
            category_id = update_data.pop("category")
            if category_id is not None:
                ProductService._check_category(db, category_id)
                product.category_id = category_id
        if update_data.get("name") is not None:
            update_data["name"] = ProductService._check_name(db, update_data["name"], exclude_id=product_id)

        for field, value in update_data.items():
            if value is not None:
                setattr(product, field, value)

        db.commit()
        return ProductService.get_product(db, product_id)

    @staticmethod
    def delete_product(db: Session, product_id: int) -> None:
        """Delete product (hard delete); order lines keep their stored name and price"""
        product = ProductService.get_product(db, product_id)
        db.delete(product)
        db.commit()
        logger.info(f"Deleted product {product_id}")
