# cravebites/services/report_service.py
"""
Sales reporting

Every sales figure is computed from delivered orders only; pending,
processing and cancelled orders never count as sales. The status breakdown is
the one report that looks at every order.

Line items whose category cannot be resolved (ad-hoc products, or products
removed from the catalog after the order was placed) are reported under
``UNCATEGORIZED`` rather than dropped, so the category and product reports
both add up to the full item revenue of delivered orders.
"""
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from opentelemetry import trace
import logging

from cravebites.db.database import utcnow
from cravebites.models.catalog import Category, Product
from cravebites.models.order import Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

SALES_WINDOW_DAYS = 30
UNCATEGORIZED = "Uncategorized"
NO_TOP_CATEGORY = "N/A"


def local_day(ts: datetime) -> date:
    """Calendar day of ``ts`` in the server's timezone (naive values are UTC)"""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone().date()


def _by_sales(rows: List[dict], key: str) -> List[dict]:
    return sorted(rows, key=lambda r: (-r["sales"], r[key]))


class ReportService:
    """Read-only aggregations over stored orders"""

    @staticmethod
    def summary(db: Session, sales_by_category: Optional[List[dict]] = None) -> dict:
        """Totals over delivered orders"""
        total_sales, total_orders = db.query(
            func.coalesce(func.sum(Order.total_amount), 0.0),
            func.count(Order.id)
        ).filter(Order.status == OrderStatus.DELIVERED).one()

        if sales_by_category is None:
            sales_by_category = ReportService.sales_by_category(db)

        total_sales = float(total_sales or 0.0)
        return {
            "total_sales": total_sales,
            "total_orders": int(total_orders),
            "average_order_value": total_sales / total_orders if total_orders else 0.0,
            "top_selling_category": (
                sales_by_category[0]["category"] if sales_by_category else NO_TOP_CATEGORY
            ),
        }

    @staticmethod
    def sales_by_date(db: Session, now: Optional[datetime] = None, days: int = SALES_WINDOW_DAYS) -> List[dict]:
        """Delivered sales per calendar day over the trailing window, oldest first"""
        now = now or utcnow()
        since = now - timedelta(days=days)

        rows = db.query(Order.created_at, Order.total_amount).filter(
            Order.status == OrderStatus.DELIVERED,
            Order.created_at >= since
        ).all()

        buckets: Dict[date, dict] = {}
        for created_at, total_amount in rows:
            day = local_day(created_at)
            bucket = buckets.setdefault(day, {"date": day.isoformat(), "sales": 0.0, "orders": 0})
            bucket["sales"] += total_amount
            bucket["orders"] += 1

        return [buckets[day] for day in sorted(buckets)]

    @staticmethod
    def sales_by_category(db: Session) -> List[dict]:
        """Delivered item revenue per category, best seller first"""
        line_total = OrderItem.quantity * OrderItem.price
        rows = (
            db.query(
                Category.name,
                func.sum(line_total),
                func.count(OrderItem.id)
            )
            .select_from(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .outerjoin(Product, OrderItem.product_id == Product.id)
            .outerjoin(Category, Product.category_id == Category.id)
            .filter(Order.status == OrderStatus.DELIVERED)
            .group_by(Category.name)
            .all()
        )

        # Ad-hoc lines and a real category named like the fallback share one row
        merged: "OrderedDict[str, dict]" = OrderedDict()
        for name, sales, count in rows:
            label = name or UNCATEGORIZED
            bucket = merged.setdefault(label, {"category": label, "sales": 0.0, "orders": 0})
            bucket["sales"] += float(sales or 0.0)
            bucket["orders"] += int(count)

        return _by_sales(list(merged.values()), "category")

    @staticmethod
    def sales_by_product(db: Session) -> List[dict]:
        """Delivered item revenue and units per product, best seller first"""
        line_total = OrderItem.quantity * OrderItem.price
        rows = (
            db.query(
                Product.name,
                OrderItem.name,
                func.sum(line_total),
                func.sum(OrderItem.quantity)
            )
            .select_from(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .outerjoin(Product, OrderItem.product_id == Product.id)
            .filter(Order.status == OrderStatus.DELIVERED)
            .group_by(Product.name, OrderItem.name)
            .all()
        )

        # Catalog lines report under the current catalog name, which may span
        # several stored item names
        merged: "OrderedDict[str, dict]" = OrderedDict()
        for product_name, item_name, sales, quantity in rows:
            name = product_name or item_name
            bucket = merged.setdefault(name, {"name": name, "sales": 0.0, "quantity": 0})
            bucket["sales"] += float(sales or 0.0)
            bucket["quantity"] += int(quantity or 0)

        return _by_sales(list(merged.values()), "name")

    @staticmethod
    def order_status_counts(db: Session) -> List[dict]:
        """Order count and order value per status, over every order"""
        rows = db.query(
            Order.status,
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0.0)
        ).group_by(Order.status).all()

        rank = {status: i for i, status in enumerate(OrderStatus)}
        return [
            {"status": status, "count": int(count), "total_sales": float(total or 0.0)}
            for status, count, total in sorted(rows, key=lambda r: rank[r[0]])
        ]

    @staticmethod
    def build_report(db: Session, now: Optional[datetime] = None) -> dict:
        """All reports for the admin dashboard, computed fresh"""
        with tracer.start_as_current_span("report_service.build_report") as span:
            sales_by_category = ReportService.sales_by_category(db)
            report = {
                "summary": ReportService.summary(db, sales_by_category),
                "sales_by_date": ReportService.sales_by_date(db, now=now),
                "sales_by_category": sales_by_category,
                "sales_by_product": ReportService.sales_by_product(db),
                "order_status_counts": ReportService.order_status_counts(db),
            }

            span.set_attribute("report.delivered_orders", report["summary"]["total_orders"])
            logger.info(
                f"Built sales report: {report['summary']['total_orders']} delivered orders, "
                f"{len(report['sales_by_date'])} active days"
            )
            return report
