# cravebites/models/schemas.py
"""
Pydantic schemas for request/response validation

Wire names are camelCase (``orderNumber``, ``orderItems``); request bodies
accept either camelCase or the snake_case field names.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Union
from datetime import datetime

from cravebites.models.admin import AdminRole
from cravebites.models.order import (
    GUEST_NAME, GUEST_PHONE, OrderStatus, PaymentMethod, ProductKind
)


class CamelModel(BaseModel):
    """Base schema with camelCase aliases"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True
    )


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# --- Catalog ---

class CategoryRef(CamelModel):
    id: int
    name: str


class CategoryResponse(CamelModel):
    """Schema for category response"""
    id: int
    name: str
    description: str
    image: str
    featured: bool
    sort_order: int = Field(serialization_alias="order")
    active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProductBase(CamelModel):
    """Base product schema"""
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: str = Field("", description="Product description")
    price: float = Field(..., ge=0, description="Product price")
    image: Optional[str] = None
    is_veg: bool = False
    is_hot_deal: bool = False
    is_cravebites_favorite: bool = False
    is_addon: bool = False


class ProductCreate(ProductBase):
    """Schema for creating a product"""
    category: int = Field(..., description="Category id")


class ProductUpdate(CamelModel):
    """Schema for updating a product (all fields optional)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    category: Optional[int] = None
    is_veg: Optional[bool] = None
    is_hot_deal: Optional[bool] = None
    is_cravebites_favorite: Optional[bool] = None
    is_addon: Optional[bool] = None


class ProductResponse(ProductBase):
    """Schema for product response"""
    id: int
    category: Optional[CategoryRef] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


# --- Orders ---

class CustomerInfo(CamelModel):
    name: Optional[str] = GUEST_NAME
    phone: Optional[str] = GUEST_PHONE


class OrderItemCreate(CamelModel):
    """Schema for a submitted line item.

    ``productRef`` is either a catalog product id or any other token for an
    ad-hoc product; the storefront sends it as ``product``.
    """
    product_ref: Union[int, str] = Field(
        ...,
        validation_alias=AliasChoices("productRef", "product", "product_ref")
    )
    name: Optional[str] = None
    quantity: int = Field(..., ge=1, description="Quantity must be at least 1")
    price: Optional[float] = Field(None, ge=0, description="Price cannot be negative")
    image: Optional[str] = None


class OrderCreate(CamelModel):
    """Schema for creating an order"""
    customer: Optional[CustomerInfo] = None
    order_items: List[OrderItemCreate] = Field(default_factory=list)
    payment_method: PaymentMethod
    subtotal: float = Field(..., ge=0)
    cgst: Optional[float] = Field(None, ge=0)
    sgst: Optional[float] = Field(None, ge=0)
    delivery_charge: float = Field(0, ge=0)
    total_amount: float = Field(..., ge=0)


class StatusUpdate(BaseModel):
    """Schema for updating order status (checked against OrderStatus by the service)"""
    status: Optional[str] = None


class PaymentResult(BaseModel):
    """Payment confirmation as reported by the payment provider"""
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class ResolvedProduct(CamelModel):
    """Catalog details joined onto a catalog order line"""
    id: int
    name: str
    price: float
    image: Optional[str] = None
    category: Optional[CategoryRef] = None


class OrderItemResponse(CamelModel):
    """Schema for order item response"""
    id: int
    product_ref: str
    product_kind: ProductKind
    name: str
    quantity: int
    price: float
    image: Optional[str] = None
    product: Optional[ResolvedProduct] = None


class OrderResponse(CamelModel):
    """Schema for order response"""
    id: int
    order_number: str
    customer: CustomerInfo
    order_items: List[OrderItemResponse]
    payment_method: PaymentMethod
    subtotal: float
    cgst: float
    sgst: float
    delivery_charge: float
    total_amount: float
    status: OrderStatus
    is_paid: bool
    paid_at: Optional[datetime] = None
    payment_result: Optional[PaymentResult] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


# --- Reports ---

class ReportSummary(CamelModel):
    total_sales: float
    total_orders: int
    average_order_value: float
    top_selling_category: str


class DailySales(CamelModel):
    date: str
    sales: float
    orders: int


class CategorySales(CamelModel):
    category: str
    sales: float
    orders: int


class ProductSales(CamelModel):
    name: str
    sales: float
    quantity: int


class StatusCount(CamelModel):
    status: OrderStatus
    count: int
    total_sales: float


class OrderReport(CamelModel):
    """Schema for GET /orders/stats/reports"""
    summary: ReportSummary
    sales_by_date: List[DailySales]
    sales_by_category: List[CategorySales]
    sales_by_product: List[ProductSales]
    order_status_counts: List[StatusCount]


# --- Admin ---

class AdminSetup(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminResponse(CamelModel):
    id: int
    name: str
    email: str
    role: AdminRole


class AdminEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    admin: AdminResponse


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    access_token: str
    token_type: str = "bearer"
    admin: AdminResponse


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class VerifyOtpRequest(CamelModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)


class ResetPasswordRequest(CamelModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)
    new_password: str = Field(..., min_length=6, max_length=72)


class UploadResponse(BaseModel):
    url: str
    public_id: str
