from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Tuple
import logging
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from extensions import db
from models import WalletBalance, Transaction, TransactionType
from logger import wallet_logger
from mlm.exceptions import ValidationError, InsufficientBalanceError, ConflictError


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_amount(value) -> Decimal:
    """Parse a money value into a 2dp Decimal. Raises ValidationError."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("Invalid amount format")
    if not amount.is_finite():
        raise ValidationError("Invalid amount format")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


# ==========================================================
#                  WALLET LEDGER
# ==========================================================
class WalletService:
    """
    Balance changes go through credit/debit only. Both lock the wallet row,
    bump the version column and append a Transaction carrying balance_after,
    so the balance always equals the ledger sum.
    """

    @staticmethod
    def get_wallet(user_id: int, lock: bool = False) -> WalletBalance:
        q = WalletBalance.query.filter_by(user_id=user_id)
        if lock:
            q = q.with_for_update().populate_existing()
        wallet = q.first()
        if wallet is None:
            wallet = WalletBalance(
                user_id=user_id,
                balance=Decimal("0"),
                total_earnings=Decimal("0"),
                total_withdrawals=Decimal("0"),
            )
            db.session.add(wallet)
            try:
                db.session.flush()
            except IntegrityError:
                raise ConflictError("Wallet was created concurrently, please retry")
        return wallet

    @staticmethod
    def credit(user_id: int, amount, type_: TransactionType, description: str = None,
               reference_id: Optional[str] = None) -> Transaction:
        amount = to_amount(amount)
        if amount <= 0:
            raise ValidationError("Credit amount must be positive")

        wallet = WalletService.get_wallet(user_id, lock=True)
        wallet.balance = Decimal(str(wallet.balance)) + amount
        wallet.total_earnings = Decimal(str(wallet.total_earnings)) + amount
        return WalletService._record(wallet, amount, type_, description, reference_id)

    @staticmethod
    def debit(user_id: int, amount, type_: TransactionType, description: str = None,
              reference_id: Optional[str] = None) -> Transaction:
        amount = to_amount(amount)
        if amount <= 0:
            raise ValidationError("Debit amount must be positive")

        wallet = WalletService.get_wallet(user_id, lock=True)
        balance = Decimal(str(wallet.balance))
        if amount > balance:
            wallet_logger.warning(f"Debit refused for user {user_id}: {amount} > balance {balance}")
            raise InsufficientBalanceError(f"Insufficient balance: available {balance}, required {amount}")

        wallet.balance = balance - amount
        if type_ is TransactionType.WITHDRAWAL:
            wallet.total_withdrawals = Decimal(str(wallet.total_withdrawals)) + amount
        return WalletService._record(wallet, -amount, type_, description, reference_id)

    @staticmethod
    def _record(wallet, signed_amount, type_, description, reference_id) -> Transaction:
        txn = Transaction(
            user_id=wallet.user_id,
            type=type_.value,
            amount=signed_amount,
            balance_after=wallet.balance,
            description=description,
            reference_id=reference_id,
        )
        db.session.add(txn)
        db.session.flush()
        wallet_logger.info(
            f"{type_.value} {signed_amount:+} for user {wallet.user_id}, "
            f"balance now {wallet.balance} (ref={reference_id})"
        )
        return txn

    @staticmethod
    def verify_ledger(user_id: int) -> Tuple[bool, Decimal, Decimal]:
        """Returns (consistent, wallet_balance, ledger_sum)."""
        wallet = WalletBalance.query.filter_by(user_id=user_id).first()
        balance = Decimal(str(wallet.balance)) if wallet else Decimal("0")
        ledger = db.session.query(func.coalesce(func.sum(Transaction.amount), 0)).filter(
            Transaction.user_id == user_id
        ).scalar()
        ledger = Decimal(str(ledger)).quantize(CENT)
        consistent = balance.quantize(CENT) == ledger
        if not consistent:
            logger.error(f"Ledger mismatch for user {user_id}: wallet {balance} vs ledger {ledger}")
        return consistent, balance, ledger

    @staticmethod
    def transactions_for(user_id: int, limit: int = 50, offset: int = 0):
        return (
            Transaction.query.filter_by(user_id=user_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
