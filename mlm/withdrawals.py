from datetime import datetime, timezone
from decimal import Decimal
import logging
from flask import current_app
from sqlalchemy import func
from extensions import db
from models import User, WithdrawalRequest, ReviewStatus, TransactionType
from logger import wallet_logger
from mlm.exceptions import ValidationError, InsufficientBalanceError, NotFoundError
from mlm.wallet import WalletService, to_amount
from mlm.workflows import ensure_transition
from mlm.notifications import notify


logger = logging.getLogger(__name__)


def pending_total(user_id, exclude_id=None) -> Decimal:
    q = db.session.query(func.coalesce(func.sum(WithdrawalRequest.amount), 0)).filter(
        WithdrawalRequest.user_id == user_id,
        WithdrawalRequest.status == ReviewStatus.PENDING.value,
    )
    if exclude_id is not None:
        q = q.filter(WithdrawalRequest.id != exclude_id)
    return Decimal(str(q.scalar()))


def request_withdrawal(user: User, amount, withdrawal_type="bank", **account) -> WithdrawalRequest:
    """Open a pending withdrawal. Nothing is debited until an admin approves."""
    amount = to_amount(amount)
    min_amount = Decimal(str(current_app.config.get("MIN_WITHDRAWAL", "500")))
    max_amount = Decimal(str(current_app.config.get("MAX_WITHDRAWAL", "100000")))

    if amount < min_amount:
        raise ValidationError(f"Minimum withdrawal is {min_amount}")
    if amount > max_amount:
        raise ValidationError(f"Maximum withdrawal is {max_amount}")

    # lock the wallet so two requests cannot both pass the available check
    wallet = WalletService.get_wallet(user.id, lock=True)
    available = Decimal(str(wallet.balance)) - pending_total(user.id)
    if amount > available:
        raise InsufficientBalanceError(f"Insufficient balance: available {available}, requested {amount}")

    withdrawal = WithdrawalRequest(
        user_id=user.id,
        amount=amount,
        withdrawal_type=withdrawal_type,
        bank_account_number=account.get("bank_account_number"),
        bank_ifsc=account.get("bank_ifsc"),
        bank_name=account.get("bank_name"),
        upi_id=account.get("upi_id"),
        status=ReviewStatus.PENDING.value,
    )
    db.session.add(withdrawal)
    db.session.flush()
    wallet_logger.info(f"Withdrawal {withdrawal.id} requested by user {user.id} for {amount}")
    return withdrawal


def review_withdrawal(withdrawal_id, admin: User, status, admin_notes=None) -> WithdrawalRequest:
    withdrawal = (
        WithdrawalRequest.query.filter_by(id=withdrawal_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not withdrawal:
        raise NotFoundError("Withdrawal request not found")

    ensure_transition("withdrawal", withdrawal.status, status)

    if status == ReviewStatus.APPROVED.value:
        WalletService.debit(
            withdrawal.user_id,
            withdrawal.amount,
            TransactionType.WITHDRAWAL,
            description=f"Withdrawal via {withdrawal.withdrawal_type}",
            reference_id=f"withdrawal-{withdrawal.id}",
        )

    withdrawal.status = status
    withdrawal.admin_notes = admin_notes
    withdrawal.processed_by = admin.id
    withdrawal.processed_at = datetime.now(timezone.utc)

    notify(
        withdrawal.user_id,
        f"withdrawal_{status}",
        f"Withdrawal {status}",
        f"Your withdrawal of {withdrawal.amount} was {status}." + (f" {admin_notes}" if admin_notes else ""),
        related_id=withdrawal.id,
    )
    wallet_logger.info(f"Withdrawal {withdrawal.id} {status} by admin {admin.id}")
    return withdrawal
