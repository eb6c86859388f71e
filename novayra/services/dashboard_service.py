# novayra/services/dashboard_service.py
from flask import current_app
from sqlalchemy import func, case

from ..models import db, Order, Product, ContactMessage, SampleRequest, DashboardStat
from ..models import OrderStatusEnum, ContactStatusEnum, SampleStatusEnum


class DashboardService:
    """
    Aggregates for the admin dashboard. Every fetch recomputes the figures and
    overwrites the dashboard_stats snapshot row of each stat.
    """

    @staticmethod
    def compute_stats():
        threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 10)

        order_row = db.session.query(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0),
            func.count(case((Order.status == OrderStatusEnum.PENDING, 1))),
            func.count(case((Order.status == OrderStatusEnum.PROCESSING, 1))),
        ).one()
        product_row = db.session.query(
            func.count(Product.id),
            func.count(case((Product.stock_quantity <= threshold, 1))),
        ).one()
        new_contacts = ContactMessage.query.filter_by(status=ContactStatusEnum.NEW).count()
        pending_samples = SampleRequest.query.filter_by(status=SampleStatusEnum.PENDING).count()

        return {
            "total_orders": {"value": order_row[0] or 0, "period": "all_time"},
            "total_revenue": {"value": round(float(order_row[1] or 0), 2), "period": "all_time"},
            "total_products": {"value": product_row[0] or 0, "period": "all_time"},
            "pending_orders": {"value": order_row[2] or 0, "period": "current"},
            "processing_orders": {"value": order_row[3] or 0, "period": "current"},
            "low_stock_products": {"value": product_row[1] or 0, "period": "current"},
            "new_contacts": {"value": new_contacts, "period": "current"},
            "pending_samples": {"value": pending_samples, "period": "current"},
        }

    @staticmethod
    def store_snapshot(stats):
        """Upserts each stat by name."""
        existing = {row.stat_name: row for row in DashboardStat.query.filter(DashboardStat.stat_name.in_(list(stats))).all()}
        for stat_name, stat_value in stats.items():
            row = existing.get(stat_name)
            if row is None:
                db.session.add(DashboardStat(stat_name=stat_name, stat_value=stat_value))
            else:
                row.stat_value = stat_value
        db.session.commit()

    @staticmethod
    def refresh():
        stats = DashboardService.compute_stats()
        DashboardService.store_snapshot(stats)
        return stats

    @staticmethod
    def low_stock_products(threshold):
        return (Product.query
                .filter(Product.stock_quantity <= threshold)
                .order_by(Product.stock_quantity.asc(), Product.id.asc())
                .all())
