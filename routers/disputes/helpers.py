from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models import Dispute, DisputeMessage, DISPUTE_STATUSES, utc_now
from routers.profiles.helpers import as_uuid
from typing import Any, List, Optional
import logging

logger = logging.getLogger(__name__)


class DisputeHelpers:

    async def create_dispute(
        self,
        db: AsyncSession,
        order_id: Any,
        customer_id: Any,
        tailor_id: Any,
        subject: str,
        description: str,
        raised_by: str,
        priority: str = "medium"
    ) -> Dispute:
        dispute = Dispute(
            order_id=as_uuid(order_id),
            customer_id=as_uuid(customer_id),
            tailor_id=as_uuid(tailor_id),
            subject=subject,
            description=description,
            raised_by=raised_by,
            priority=priority,
            status="open",
        )
        db.add(dispute)
        await db.commit()
        await db.refresh(dispute)
        logger.info(f"Dispute {dispute.id} raised by {raised_by} on order {order_id}")
        return dispute

    async def get_disputes(self, db: AsyncSession, profile_id: Any, role: str) -> List[Dispute]:
        """Customers and tailors see their own disputes; admins see all. Newest first."""
        query = select(Dispute)
        if role == "customer":
            query = query.where(Dispute.customer_id == as_uuid(profile_id))
        elif role == "tailor":
            query = query.where(Dispute.tailor_id == as_uuid(profile_id))
        result = await db.execute(query.order_by(Dispute.created_at.desc()))
        return list(result.scalars().all())

    async def get_dispute(self, db: AsyncSession, dispute_id: Any) -> Optional[Dispute]:
        result = await db.execute(select(Dispute).where(Dispute.id == as_uuid(dispute_id)))
        return result.scalar_one_or_none()

    async def update_dispute_status(
        self,
        db: AsyncSession,
        dispute_id: Any,
        new_status: str,
        resolution_notes: Optional[str] = None,
        resolved_by: Optional[Any] = None
    ) -> Optional[Dispute]:
        """resolved_at is stamped for resolved disputes and cleared otherwise"""
        if new_status not in DISPUTE_STATUSES:
            raise ValueError(f"Invalid dispute status: {new_status}")

        dispute = await self.get_dispute(db, dispute_id)
        if dispute is None:
            return None

        dispute.status = new_status
        dispute.resolution_notes = resolution_notes
        if new_status == "resolved":
            dispute.resolved_at = utc_now()
            dispute.resolved_by = as_uuid(resolved_by) if resolved_by else None
        else:
            dispute.resolved_at = None
            dispute.resolved_by = None
        dispute.updated_at = utc_now()

        await db.commit()
        await db.refresh(dispute)
        logger.info(f"Dispute {dispute.id} is now {new_status}")
        return dispute

    async def add_dispute_message(
        self,
        db: AsyncSession,
        dispute_id: Any,
        sender_id: Any,
        sender_type: str,
        content: str
    ) -> DisputeMessage:
        message = DisputeMessage(
            dispute_id=as_uuid(dispute_id),
            sender_id=as_uuid(sender_id),
            sender_type=sender_type,
            content=content,
        )
        db.add(message)
        await db.commit()
        await db.refresh(message)
        return message

    async def get_dispute_messages(self, db: AsyncSession, dispute_id: Any) -> List[DisputeMessage]:
        result = await db.execute(
            select(DisputeMessage)
            .where(DisputeMessage.dispute_id == as_uuid(dispute_id))
            .order_by(DisputeMessage.created_at.asc())
        )
        return list(result.scalars().all())


dispute_helpers = DisputeHelpers()
