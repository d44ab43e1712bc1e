from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from config import get_db, PAYMENT_CURRENCY
from routers.auth.auth import get_current_user
from routers.auth.session import AuthSession
from routers.orders.orders import load_order_for
from dependencies.rbac import require_payment_read, require_payment_write
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import (
    PaymentCreate, PaymentStatusUpdate, PaymentResponse, PaymentOrderResponse,
    CheckoutOptions, PaymentVerification, PaymentVerificationResponse, EarningsResponse
)
from .helpers import payment_helpers
from typing import List
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment_data: PaymentCreate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_payment_write)
):
    """
    Create a pending payment for an order and, by default, the Razorpay
    order the checkout widget needs
    """
    try:
        current_user.require_role("customer")
        order = await load_order_for(db, payment_data.order_id, current_user, roles=("customer",))

        payment = await payment_helpers.create_payment(
            db,
            order_id=order.id,
            amount=payment_data.amount,
            payment_type=payment_data.payment_type.value,
            customer_id=order.customer_id,
            tailor_id=order.tailor_id
        )

        checkout = None
        if payment_data.create_checkout:
            checkout = CheckoutOptions(**await payment_helpers.create_checkout(db, payment))

        return PaymentOrderResponse(
            payment=safe_model_validate(PaymentResponse, payment),
            checkout=checkout
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating payment order: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create payment order"
        )


@router.post("/verify", response_model=PaymentVerificationResponse)
async def verify_payment(
    verification_data: PaymentVerification,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_payment_write)
):
    """
    Verify the Razorpay checkout signature. A valid signature captures the
    payment; an invalid one marks it failed.
    """
    try:
        customer = current_user.require_role("customer")

        payment = await payment_helpers.get_payment_by_razorpay_order(db, verification_data.razorpay_order_id)
        if payment is None or str(payment.customer_id) != str(customer.id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Payment record not found"
            )

        if payment.status != "pending":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Payment already processed"
            )

        payment, verified = await payment_helpers.verify_payment(
            db,
            verification_data.razorpay_order_id,
            verification_data.razorpay_payment_id,
            verification_data.razorpay_signature
        )

        return PaymentVerificationResponse(
            verified=verified,
            message="Payment verified successfully" if verified else "Invalid payment signature",
            payment=safe_model_validate(PaymentResponse, payment)
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error verifying payment: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify payment"
        )


@router.get("", response_model=List[PaymentResponse])
async def get_my_payments(
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_payment_read)
):
    """Payments made by the signed-in customer, newest first"""
    customer = current_user.require_role("customer")
    payments = await payment_helpers.get_payments(db, customer.id)
    return safe_model_validate_list(PaymentResponse, payments)


@router.get("/earnings", response_model=EarningsResponse)
async def get_tailor_earnings(
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_payment_read)
):
    """Captured payments received by the signed-in tailor"""
    tailor = current_user.require_role("tailor")
    payments = await payment_helpers.get_tailor_earnings(db, tailor.id)
    return EarningsResponse(
        payments=safe_model_validate_list(PaymentResponse, payments),
        total_earned=sum(payment.amount for payment in payments),
        currency=PAYMENT_CURRENCY
    )


@router.get("/order/{order_id}", response_model=List[PaymentResponse])
async def get_order_payments(
    order_id: UUID,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_payment_read)
):
    order = await load_order_for(db, order_id, current_user)
    payments = await payment_helpers.get_order_payments(db, order.id)
    return safe_model_validate_list(PaymentResponse, payments)


@router.put("/{payment_id}/status", response_model=PaymentResponse)
async def update_payment_status(
    payment_id: UUID,
    status_update: PaymentStatusUpdate,
    current_user: AuthSession = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_payment_write)
):
    """Set a payment's status directly (admin reconciliation)"""
    try:
        current_user.require_role("admin")

        payment = await payment_helpers.update_payment_status(
            db,
            payment_id,
            status_update.status.value,
            razorpay_payment_id=status_update.razorpay_payment_id
        )
        if payment is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Payment not found"
            )
        return safe_model_validate(PaymentResponse, payment)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating payment {payment_id}: {str(e)}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update payment"
        )
