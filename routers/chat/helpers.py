from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update
from models import Conversation, Message, utc_now
from routers.profiles.helpers import as_uuid
from utils.realtime import realtime_hub
from utils.response_helpers import row_to_event_payload
from .schemas import MessageResponse
from typing import Any, List, Optional
import logging

logger = logging.getLogger(__name__)


class ChatHelpers:
    """One conversation per customer/tailor pair, with ordered messages"""

    async def find_conversation(self, db: AsyncSession, customer_id: Any, tailor_id: Any) -> Optional[Conversation]:
        result = await db.execute(
            select(Conversation)
            .where(Conversation.customer_id == as_uuid(customer_id))
            .where(Conversation.tailor_id == as_uuid(tailor_id))
        )
        return result.scalar_one_or_none()

    async def get_or_create_conversation(
        self,
        db: AsyncSession,
        customer_id: Any,
        tailor_id: Any,
        order_id: Optional[Any] = None
    ) -> Conversation:
        """
        Return the pair's conversation, creating it if needed. A concurrent
        insert for the same pair hits the unique constraint and falls back to
        the row that won.
        """
        existing = await self.find_conversation(db, customer_id, tailor_id)
        if existing:
            return existing

        conversation = Conversation(
            customer_id=as_uuid(customer_id),
            tailor_id=as_uuid(tailor_id),
            order_id=as_uuid(order_id) if order_id else None,
        )
        db.add(conversation)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            existing = await self.find_conversation(db, customer_id, tailor_id)
            if existing is None:
                raise
            logger.info(f"Conversation for customer {customer_id} and tailor {tailor_id} created concurrently")
            return existing

        await db.refresh(conversation)
        logger.info(f"Conversation {conversation.id} opened")
        return conversation

    async def get_conversations(self, db: AsyncSession, profile_id: Any, role: str) -> List[Conversation]:
        """Active conversations of a customer or tailor, most recent activity first"""
        column = Conversation.customer_id if role == "customer" else Conversation.tailor_id
        result = await db.execute(
            select(Conversation)
            .where(column == as_uuid(profile_id))
            .where(Conversation.is_active.is_(True))
            .order_by(Conversation.last_message_at.desc())
        )
        return list(result.scalars().all())

    async def get_conversation(self, db: AsyncSession, conversation_id: Any) -> Optional[Conversation]:
        result = await db.execute(select(Conversation).where(Conversation.id == as_uuid(conversation_id)))
        return result.scalar_one_or_none()

    async def get_messages(self, db: AsyncSession, conversation_id: Any) -> List[Message]:
        result = await db.execute(
            select(Message)
            .where(Message.conversation_id == as_uuid(conversation_id))
            .order_by(Message.created_at.asc())
        )
        return list(result.scalars().all())

    async def send_message(
        self,
        db: AsyncSession,
        conversation_id: Any,
        sender_id: Any,
        sender_type: str,
        content: str,
        attachment_url: Optional[str] = None
    ) -> Optional[Message]:
        conversation = await self.get_conversation(db, conversation_id)
        if conversation is None:
            return None

        message = Message(
            conversation_id=conversation.id,
            sender_id=as_uuid(sender_id),
            sender_type=sender_type,
            content=content,
            attachment_url=attachment_url,
            is_read=False,
        )
        db.add(message)
        conversation.last_message_at = utc_now()

        await db.commit()
        await db.refresh(message)

        realtime_hub.publish("messages", row_to_event_payload(MessageResponse, message))
        return message

    async def mark_messages_as_read(self, db: AsyncSession, conversation_id: Any) -> int:
        result = await db.execute(
            update(Message)
            .where(Message.conversation_id == as_uuid(conversation_id))
            .where(Message.is_read.is_(False))
            .values(is_read=True)
        )
        await db.commit()
        return result.rowcount or 0

    async def close_conversation(self, db: AsyncSession, conversation_id: Any) -> Optional[Conversation]:
        conversation = await self.get_conversation(db, conversation_id)
        if conversation is None:
            return None
        conversation.is_active = False
        await db.commit()
        await db.refresh(conversation)
        return conversation


chat_helpers = ChatHelpers()
