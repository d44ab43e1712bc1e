from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET, PAYMENT_CURRENCY, CHECKOUT_NAME
from models import Payment, Order, PAYMENT_STATUSES, utc_now
from routers.profiles.helpers import as_uuid
from typing import Any, Dict, List, Optional, Tuple
import razorpay
import hmac
import hashlib
import logging

logger = logging.getLogger(__name__)


def to_paise(amount: float) -> int:
    return int(round(amount * 100))


class PaymentHelpers:
    """Payment records for orders and the Razorpay checkout handshake"""

    def __init__(self):
        self._razorpay_client = None

    @property
    def razorpay_client(self) -> razorpay.Client:
        if self._razorpay_client is None:
            self._razorpay_client = razorpay.Client(auth=(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET))
        return self._razorpay_client

    async def create_payment(
        self,
        db: AsyncSession,
        order_id: Any,
        amount: float,
        payment_type: str,
        customer_id: Any,
        tailor_id: Any
    ) -> Payment:
        payment = Payment(
            order_id=as_uuid(order_id),
            customer_id=as_uuid(customer_id),
            tailor_id=as_uuid(tailor_id),
            amount=amount,
            currency=PAYMENT_CURRENCY,
            payment_method="razorpay",
            payment_type=payment_type,
            status="pending",
        )
        db.add(payment)
        await db.commit()
        await db.refresh(payment)
        logger.info(f"Payment {payment.id} created for order {order_id}: {payment_type} ₹{amount}")
        return payment

    async def create_checkout(self, db: AsyncSession, payment: Payment) -> Dict[str, Any]:
        """
        Create the Razorpay order for a pending payment and return the
        options the checkout widget is opened with
        """
        razorpay_order = self.razorpay_client.order.create({
            "amount": to_paise(payment.amount),
            "currency": payment.currency,
            "receipt": str(payment.id),
            "payment_capture": 1,
            "notes": {
                "order_id": str(payment.order_id),
                "payment_type": payment.payment_type
            }
        })

        payment.razorpay_order_id = razorpay_order["id"]
        await db.commit()
        await db.refresh(payment)

        return {
            "key": RAZORPAY_KEY_ID,
            "amount": to_paise(payment.amount),
            "currency": payment.currency,
            "name": CHECKOUT_NAME,
            "description": f"Order {payment.order_id}",
            "order_id": razorpay_order["id"],
        }

    async def get_payment(self, db: AsyncSession, payment_id: Any) -> Optional[Payment]:
        result = await db.execute(select(Payment).where(Payment.id == as_uuid(payment_id)))
        return result.scalar_one_or_none()

    async def get_payment_by_razorpay_order(self, db: AsyncSession, razorpay_order_id: str) -> Optional[Payment]:
        result = await db.execute(
            select(Payment).where(Payment.razorpay_order_id == razorpay_order_id)
        )
        return result.scalars().first()

    async def update_payment_status(
        self,
        db: AsyncSession,
        payment_id: Any,
        new_status: str,
        razorpay_payment_id: Optional[str] = None,
        razorpay_signature: Optional[str] = None
    ) -> Optional[Payment]:
        """
        Set status and provider ids. captured_at is stamped only for captured
        payments. Moving into captured credits the order's advance or final amount,
        moving out of it (refund, failure) reverses that credit.
        """
        if new_status not in PAYMENT_STATUSES:
            raise ValueError(f"Invalid payment status: {new_status}")

        payment = await self.get_payment(db, payment_id)
        if payment is None:
            return None

        was_captured = payment.status == "captured"
        is_captured = new_status == "captured"

        payment.status = new_status
        if razorpay_payment_id:
            payment.razorpay_payment_id = razorpay_payment_id
        if razorpay_signature:
            payment.razorpay_signature = razorpay_signature
        payment.captured_at = utc_now() if is_captured else None
        payment.updated_at = utc_now()

        if was_captured != is_captured:
            credit = payment.amount if is_captured else -payment.amount
            result = await db.execute(select(Order).where(Order.id == payment.order_id))
            order = result.scalar_one_or_none()
            if order is not None:
                if payment.payment_type == "advance":
                    order.advance_paid = max((order.advance_paid or 0.0) + credit, 0.0)
                else:
                    order.final_paid = max((order.final_paid or 0.0) + credit, 0.0)
                order.updated_at = utc_now()

        await db.commit()
        await db.refresh(payment)
        logger.info(f"Payment {payment.id} is now {new_status}")
        return payment

    def verify_signature(self, razorpay_order_id: str, razorpay_payment_id: str, signature: str) -> bool:
        generated_signature = hmac.new(
            RAZORPAY_KEY_SECRET.encode(),
            f"{razorpay_order_id}|{razorpay_payment_id}".encode(),
            hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(generated_signature, signature)

    async def verify_payment(
        self,
        db: AsyncSession,
        razorpay_order_id: str,
        razorpay_payment_id: str,
        signature: str
    ) -> Optional[Tuple[Payment, bool]]:
        """Check the checkout signature; captures on match, fails on mismatch"""
        payment = await self.get_payment_by_razorpay_order(db, razorpay_order_id)
        if payment is None:
            return None

        verified = self.verify_signature(razorpay_order_id, razorpay_payment_id, signature)
        if not verified:
            logger.warning(f"Signature mismatch for Razorpay order {razorpay_order_id}")

        payment = await self.update_payment_status(
            db,
            payment.id,
            "captured" if verified else "failed",
            razorpay_payment_id=razorpay_payment_id,
            razorpay_signature=signature
        )
        return payment, verified

    async def get_payments(self, db: AsyncSession, customer_id: Any) -> List[Payment]:
        result = await db.execute(
            select(Payment)
            .where(Payment.customer_id == as_uuid(customer_id))
            .order_by(Payment.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_order_payments(self, db: AsyncSession, order_id: Any) -> List[Payment]:
        result = await db.execute(
            select(Payment)
            .where(Payment.order_id == as_uuid(order_id))
            .order_by(Payment.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_tailor_earnings(self, db: AsyncSession, tailor_id: Any) -> List[Payment]:
        """Captured payments for a tailor, most recent capture first"""
        result = await db.execute(
            select(Payment)
            .where(Payment.tailor_id == as_uuid(tailor_id))
            .where(Payment.status == "captured")
            .order_by(Payment.captured_at.desc())
        )
        return list(result.scalars().all())


payment_helpers = PaymentHelpers()
