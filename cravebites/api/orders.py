"""
FastAPI routes for orders and sales reports
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from cravebites.db.database import get_db
from cravebites.models.schemas import (
    OrderCreate,
    OrderReport,
    OrderResponse,
    PaymentResult,
    StatusUpdate
)
from cravebites.services.order_service import OrderService
from cravebites.services.report_service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["orders"])


@router.get("/orders/stats/reports", response_model=OrderReport)
def get_order_reports(db: Session = Depends(get_db)):
    """
    Sales statistics for the admin dashboard

    Only delivered orders count towards sales; the status breakdown covers
    every order.
    """
    return ReportService.build_report(db)


@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED
)
def create_order(order: OrderCreate, db: Session = Depends(get_db)):
    """
    Create a new order

    - **customer**: `{name, phone}`, defaults to a guest customer
    - **orderItems**: at least one item; `productRef` is a catalog product id
      or any other token for a custom product (which then needs `name` and `price`)
    - **paymentMethod**: cash, card or upi
    - **cgst** / **sgst**: required, non-zero
    """
    logger.info(f"Creating order with {len(order.order_items)} items")
    return OrderService.create_order(db, order)


@router.get("/orders", response_model=List[OrderResponse])
def list_orders(
    skip: int = Query(0, ge=0, description="Number of orders to skip"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max orders to return"),
    db: Session = Depends(get_db)
):
    """List all orders, newest first"""
    return OrderService.get_orders(db, skip=skip, limit=limit)


@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, db: Session = Depends(get_db)):
    """Get a specific order with catalog details resolved"""
    return OrderService.get_order(db, order_id)


@router.put("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(order_id: str, status_update: StatusUpdate, db: Session = Depends(get_db)):
    """
    Update order status

    Available statuses: pending, processing, delivered, cancelled
    """
    logger.info(f"Updating order {order_id} status to {status_update.status}")
    return OrderService.update_order_status(db, order_id, status_update.status)


@router.put("/orders/{order_id}/pay", response_model=OrderResponse)
def update_order_payment(order_id: str, payment: PaymentResult, db: Session = Depends(get_db)):
    """Mark an order as paid with the payment provider's result"""
    return OrderService.mark_paid(db, order_id, payment)
