from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
import logging
from flask import current_app
from extensions import db
from models import Product, Purchase, PurchaseStatus, TransactionType, User
from mlm.exceptions import NotFoundError, ValidationError, InvalidTransitionError
from mlm.wallet import WalletService
from mlm.volume import apply_purchase_bv
from mlm.ranks import evaluate_ranks


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def create_purchase(user: User, product_id, quantity=1, payment_method="wallet", delivery_address=None) -> Purchase:
    """
    Record a purchase. BV is fixed here as product BV x quantity. Wallet
    payments are debited and completed at once; external ones wait for an admin.
    """
    product = db.session.get(Product, product_id)
    if not product or not product.is_active:
        raise NotFoundError("Product not found")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    if payment_method not in ("wallet", "external"):
        raise ValidationError("Payment method must be 'wallet' or 'external'")

    purchase = Purchase(
        user_id=user.id,
        product_id=product.id,
        quantity=quantity,
        total_amount=(Decimal(str(product.price)) * quantity).quantize(CENT),
        total_bv=(Decimal(str(product.bv)) * quantity).quantize(CENT),
        payment_method=payment_method,
        status=PurchaseStatus.PENDING.value,
        delivery_address=delivery_address,
    )
    db.session.add(purchase)
    db.session.flush()
    logger.info(f"Purchase {purchase.id}: user {user.id} x{quantity} {product.name} via {payment_method}")

    if payment_method == "wallet":
        WalletService.debit(
            user.id,
            purchase.total_amount,
            TransactionType.PURCHASE,
            description=f"Purchase of {quantity} x {product.name}",
            reference_id=f"purchase-{purchase.id}",
        )
        complete_purchase(purchase.id)
    return purchase


def complete_purchase(purchase_id) -> Purchase:
    """Mark paid, push BV up the tree, pay the sponsor commission and re-rank everyone touched."""
    purchase = (
        Purchase.query.filter_by(id=purchase_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not purchase:
        raise NotFoundError("Purchase not found")
    if purchase.status != PurchaseStatus.PENDING.value:
        raise InvalidTransitionError(f"Purchase is already {purchase.status}")

    purchase.status = PurchaseStatus.COMPLETED.value
    purchase.completed_at = datetime.now(timezone.utc)

    buyer = db.session.get(User, purchase.user_id)
    touched = apply_purchase_bv(buyer, purchase.total_bv)

    rate = Decimal(str(current_app.config.get("SPONSOR_COMMISSION_RATE", "0")))
    if buyer.sponsor_id and rate > 0:
        commission = (Decimal(str(purchase.total_amount)) * rate).quantize(CENT, rounding=ROUND_HALF_UP)
        if commission > 0:
            WalletService.credit(
                buyer.sponsor_id,
                commission,
                TransactionType.PURCHASE_COMMISSION,
                description=f"Commission on purchase {purchase.id} by user {buyer.id}",
                reference_id=f"purchase-{purchase.id}",
            )

    evaluate_ranks(touched)
    db.session.flush()
    logger.info(f"Purchase {purchase.id} completed, {purchase.total_bv} BV propagated to {len(touched)} users")
    return purchase


def cancel_purchase(purchase_id) -> Purchase:
    purchase = db.session.get(Purchase, purchase_id)
    if not purchase:
        raise NotFoundError("Purchase not found")
    if purchase.status != PurchaseStatus.PENDING.value:
        raise InvalidTransitionError(f"Only pending purchases can be cancelled (is {purchase.status})")
    purchase.status = PurchaseStatus.CANCELLED.value
    logger.info(f"Purchase {purchase.id} cancelled")
    return purchase
