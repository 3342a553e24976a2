from decimal import Decimal
import pytest
from extensions import db
from models import WalletBalance, Transaction, TransactionType, WithdrawalRequest
from mlm.wallet import WalletService, to_amount
from mlm.withdrawals import request_withdrawal, review_withdrawal
from mlm.exceptions import InsufficientBalanceError, ValidationError, InvalidTransitionError


def _balance(user):
    return WalletBalance.query.filter_by(user_id=user.id).one().balance


def test_to_amount_rounds_to_cents():
    assert to_amount("10.005") == Decimal("10.01")
    with pytest.raises(ValidationError):
        to_amount("ten")


def test_credit_and_debit_append_ledger_rows(make_user):
    user = make_user()

    WalletService.credit(user.id, "1000", TransactionType.ADMIN_ADJUSTMENT, "opening")
    txn = WalletService.debit(user.id, "250.50", TransactionType.PURCHASE, "order")
    db.session.commit()

    assert _balance(user) == Decimal("749.50")
    assert txn.amount == Decimal("-250.50")
    assert txn.balance_after == Decimal("749.50")
    assert Transaction.query.filter_by(user_id=user.id).count() == 2


def test_overdraft_is_refused(make_user):
    user = make_user()
    WalletService.credit(user.id, "100", TransactionType.ADMIN_ADJUSTMENT)
    db.session.commit()

    with pytest.raises(InsufficientBalanceError):
        WalletService.debit(user.id, "100.01", TransactionType.PURCHASE)


def test_non_positive_amounts_are_refused(make_user):
    user = make_user()
    with pytest.raises(ValidationError):
        WalletService.credit(user.id, "0", TransactionType.ADMIN_ADJUSTMENT)
    with pytest.raises(ValidationError):
        WalletService.debit(user.id, "-5", TransactionType.PURCHASE)


def test_balance_equals_ledger_sum(make_user):
    user = make_user()
    for amount in ("500", "125.25", "74.75"):
        WalletService.credit(user.id, amount, TransactionType.PURCHASE_COMMISSION)
    for amount in ("200", "0.01"):
        WalletService.debit(user.id, amount, TransactionType.PURCHASE)
    db.session.commit()

    consistent, balance, ledger = WalletService.verify_ledger(user.id)
    assert consistent
    assert balance == ledger == Decimal("499.99")


# ==========================================================
#                  WITHDRAWALS
# ==========================================================
def test_withdrawal_limits(make_user, fund):
    user = make_user()
    fund(user, "200000")

    with pytest.raises(ValidationError):
        request_withdrawal(user, "499.99", bank_account_number="1234", bank_ifsc="SBIN0001")
    with pytest.raises(ValidationError):
        request_withdrawal(user, "100000.01", bank_account_number="1234", bank_ifsc="SBIN0001")


def test_pending_requests_reduce_available_balance(make_user, fund):
    user = make_user()
    fund(user, "1000")

    request_withdrawal(user, "600", upi_id="me@upi", withdrawal_type="upi")
    db.session.commit()

    with pytest.raises(InsufficientBalanceError):
        request_withdrawal(user, "500", upi_id="me@upi", withdrawal_type="upi")


def test_approval_debits_exactly_the_amount(make_user, fund):
    admin = make_user(role="admin")
    user = make_user()
    fund(user, "2000")
    withdrawal = request_withdrawal(user, "750", bank_account_number="1234", bank_ifsc="SBIN0001")
    db.session.commit()
    assert _balance(user) == Decimal("2000")

    review_withdrawal(withdrawal.id, admin, "approved", "paid")
    db.session.commit()

    assert _balance(user) == Decimal("1250")
    wallet = WalletBalance.query.filter_by(user_id=user.id).one()
    assert wallet.total_withdrawals == Decimal("750")
    assert Transaction.query.filter_by(user_id=user.id, type="withdrawal").one().amount == Decimal("-750")
    assert WalletService.verify_ledger(user.id)[0]


def test_rejection_leaves_balance_alone(make_user, fund):
    admin = make_user(role="admin")
    user = make_user()
    fund(user, "2000")
    withdrawal = request_withdrawal(user, "750", bank_account_number="1234", bank_ifsc="SBIN0001")
    db.session.commit()

    review_withdrawal(withdrawal.id, admin, "rejected", "bank details mismatch")
    db.session.commit()

    assert _balance(user) == Decimal("2000")
    assert db.session.get(WithdrawalRequest, withdrawal.id).status == "rejected"


def test_only_pending_withdrawals_transition(make_user, fund):
    admin = make_user(role="admin")
    user = make_user()
    fund(user, "2000")
    withdrawal = request_withdrawal(user, "750", bank_account_number="1234", bank_ifsc="SBIN0001")
    review_withdrawal(withdrawal.id, admin, "rejected")
    db.session.commit()

    with pytest.raises(InvalidTransitionError):
        review_withdrawal(withdrawal.id, admin, "approved")
    with pytest.raises(ValidationError):
        review_withdrawal(withdrawal.id, admin, "paid")
