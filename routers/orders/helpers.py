from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models import Order, OrderItem, OrderStatusHistory, ORDER_STATUSES, utc_now
from routers.profiles.helpers import as_uuid
from typing import Any, Dict, List, Optional
import time
import logging

logger = logging.getLogger(__name__)

_last_order_millis = 0


def generate_order_number() -> str:
    """ORD-<epoch millis>, strictly increasing within the process"""
    global _last_order_millis
    millis = int(time.time() * 1000)
    if millis <= _last_order_millis:
        millis = _last_order_millis + 1
    _last_order_millis = millis
    return f"ORD-{millis}"


class OrderHelpers:
    """Order lifecycle operations; every status change appends a history row"""

    async def create_order(
        self,
        db: AsyncSession,
        customer_id: Any,
        tailor_id: Any,
        total_amount: float,
        items: List[Dict[str, Any]],
        delivery_address: Optional[str] = None,
        measurement_id: Optional[Any] = None,
        notes: Optional[str] = None,
        delivery_date_estimate=None,
        design_references: Optional[List[str]] = None,
        changed_by: Optional[Any] = None
    ) -> Order:
        """Insert the order, its items and the initial history row in one transaction"""
        order = Order(
            order_number=generate_order_number(),
            customer_id=as_uuid(customer_id),
            tailor_id=as_uuid(tailor_id),
            status="pending",
            total_amount=total_amount,
            delivery_address=delivery_address,
            delivery_date_estimate=delivery_date_estimate,
            measurement_id=as_uuid(measurement_id) if measurement_id else None,
            notes=notes,
            design_references=design_references or [],
        )
        db.add(order)
        await db.flush()

        for item in items:
            design_model_id = item.get("design_model_id")
            db.add(OrderItem(
                order_id=order.id,
                garment_type=item["garment_type"],
                fabric_type=item.get("fabric_type"),
                color=item.get("color"),
                quantity=item.get("quantity", 1),
                unit_price=item["unit_price"],
                notes=item.get("notes"),
                design_model_id=as_uuid(design_model_id) if design_model_id else None,
            ))

        db.add(OrderStatusHistory(
            order_id=order.id,
            status="pending",
            changed_by=as_uuid(changed_by) if changed_by else None,
            notes="Order placed",
        ))

        await db.commit()
        await db.refresh(order)
        logger.info(f"Order {order.order_number} created with {len(items)} items")
        return order

    async def get_order(self, db: AsyncSession, order_id: Any) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == as_uuid(order_id)))
        return result.scalar_one_or_none()

    async def get_order_items(self, db: AsyncSession, order_id: Any) -> List[OrderItem]:
        result = await db.execute(
            select(OrderItem)
            .where(OrderItem.order_id == as_uuid(order_id))
            .order_by(OrderItem.created_at)
        )
        return list(result.scalars().all())

    async def get_status_history(self, db: AsyncSession, order_id: Any) -> List[OrderStatusHistory]:
        result = await db.execute(
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == as_uuid(order_id))
            .order_by(OrderStatusHistory.created_at.asc())
        )
        return list(result.scalars().all())

    async def update_order_status(
        self,
        db: AsyncSession,
        order_id: Any,
        new_status: str,
        notes: Optional[str] = None,
        changed_by: Optional[Any] = None,
        **fields
    ) -> Optional[Order]:
        """
        Set the order status and append a history row.
        Any status may follow any other; only values outside the status set
        are refused.
        """
        if new_status not in ORDER_STATUSES:
            raise ValueError(f"Invalid order status: {new_status}")

        order = await self.get_order(db, order_id)
        if order is None:
            return None

        order.status = new_status
        order.updated_at = utc_now()
        for field, value in fields.items():
            setattr(order, field, value)

        db.add(OrderStatusHistory(
            order_id=order.id,
            status=new_status,
            changed_by=as_uuid(changed_by) if changed_by else None,
            notes=notes,
        ))

        await db.commit()
        await db.refresh(order)
        logger.info(f"Order {order.order_number} moved to {new_status}")
        return order

    async def get_customer_orders(self, db: AsyncSession, customer_id: Any) -> List[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.customer_id == as_uuid(customer_id))
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_tailor_orders(self, db: AsyncSession, tailor_id: Any) -> List[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.tailor_id == as_uuid(tailor_id))
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_orders(self, db: AsyncSession, limit: int = 50, offset: int = 0) -> List[Order]:
        result = await db.execute(
            select(Order).order_by(Order.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def accept_order(self, db: AsyncSession, order_id: Any, changed_by: Optional[Any] = None) -> Optional[Order]:
        return await self.update_order_status(db, order_id, "accepted", "Order accepted by tailor", changed_by)

    async def reject_order(self, db: AsyncSession, order_id: Any, reason: str, changed_by: Optional[Any] = None) -> Optional[Order]:
        return await self.update_order_status(
            db, order_id, "rejected", reason, changed_by, rejected_reason=reason
        )

    async def start_order(self, db: AsyncSession, order_id: Any, changed_by: Optional[Any] = None) -> Optional[Order]:
        return await self.update_order_status(db, order_id, "in_progress", "Work started", changed_by)

    async def mark_ready(self, db: AsyncSession, order_id: Any, changed_by: Optional[Any] = None) -> Optional[Order]:
        return await self.update_order_status(db, order_id, "ready", "Order ready", changed_by)

    async def ship_order(self, db: AsyncSession, order_id: Any, changed_by: Optional[Any] = None) -> Optional[Order]:
        return await self.update_order_status(db, order_id, "shipped", "Order shipped", changed_by)

    async def complete_order(self, db: AsyncSession, order_id: Any, changed_by: Optional[Any] = None) -> Optional[Order]:
        return await self.update_order_status(
            db, order_id, "delivered", "Order delivered", changed_by, actual_delivery_date=utc_now()
        )

    async def cancel_order(
        self,
        db: AsyncSession,
        order_id: Any,
        reason: Optional[str] = None,
        changed_by: Optional[Any] = None
    ) -> Optional[Order]:
        return await self.update_order_status(db, order_id, "cancelled", reason or "Order cancelled", changed_by)


order_helpers = OrderHelpers()
