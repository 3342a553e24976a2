from decimal import Decimal
from typing import Dict, List
import logging
from sqlalchemy import func
from extensions import db
from models import User, Purchase, PurchaseStatus, Side
from mlm.exceptions import NotFoundError, ValidationError
from mlm.tree import subtree_ids


logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _dec(value) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def _bv_dict(own, left, right, total) -> Dict[str, Decimal]:
    return {"ownBV": _dec(own), "leftBV": _dec(left), "rightBV": _dec(right), "totalBV": _dec(total)}


# ==========================================================
#                  BV AGGREGATOR
# ==========================================================

def calculate_user_bv(user_id: int) -> Dict[str, Decimal]:
    """Read the materialized counters for user_id."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return _bv_dict(user.own_bv, user.left_bv, user.right_bv, user.total_bv)


def apply_purchase_bv(user: User, delta) -> List[int]:
    """
    Add a completed purchase's BV to the purchaser and push it up the parent
    chain. Each ancestor gets it on the leg the chain arrived from.

    Returns the ids of every user whose counters changed, purchaser first.
    """
    delta = _dec(delta)
    if delta < ZERO:
        raise ValidationError("BV delta cannot be negative")
    if delta == ZERO:
        return []

    ids = _propagate(user, delta, include_own=True)
    logger.info(f"Applied {delta} BV from user {user.id} to {len(ids) - 1} ancestors")
    return ids


def attach_subtree_bv(user: User) -> List[int]:
    """
    A subtree headed by user was just attached under a new parent: add its
    total BV to every new ancestor. Returns the ancestor ids touched.
    """
    delta = _dec(user.total_bv)
    if delta == ZERO:
        return []
    ancestors = _propagate(user, delta, include_own=False)[1:]
    logger.info(f"Attached subtree of user {user.id} carries {delta} BV to {len(ancestors)} ancestors")
    return ancestors


def detach_subtree_bv(user: User) -> List[int]:
    """Take the subtree's total BV back off every ancestor before user leaves the tree."""
    delta = _dec(user.total_bv)
    if delta == ZERO:
        return []
    ancestors = _propagate(user, -delta, include_own=False)[1:]
    logger.info(f"Detached subtree of user {user.id} removes {delta} BV from {len(ancestors)} ancestors")
    return ancestors


def _propagate(user: User, delta: Decimal, include_own: bool) -> List[int]:
    # Resolve the chain first, then lock it in id order
    chain = []
    seen = {user.id}
    parent_id = user.parent_id
    while parent_id is not None and parent_id not in seen:
        seen.add(parent_id)
        chain.append(parent_id)
        parent_id = db.session.query(User.parent_id).filter(User.id == parent_id).scalar()

    ids = [user.id] + chain
    locked = {
        u.id: u
        for u in User.query.filter(User.id.in_(ids))
        .order_by(User.id)
        .with_for_update()
        .populate_existing()
        .all()
    }

    child = locked[user.id]
    if include_own:
        child.own_bv = _dec(child.own_bv) + delta
        child.total_bv = _dec(child.total_bv) + delta

    for ancestor_id in chain:
        ancestor = locked.get(ancestor_id)
        if ancestor is None:
            break
        if child.position == Side.LEFT.value:
            ancestor.left_bv = _dec(ancestor.left_bv) + delta
        else:
            ancestor.right_bv = _dec(ancestor.right_bv) + delta
        ancestor.total_bv = _dec(ancestor.total_bv) + delta
        child = ancestor

    db.session.flush()
    return ids


def _own_bv_by_user(user_ids=None) -> Dict[int, Decimal]:
    q = db.session.query(Purchase.user_id, func.coalesce(func.sum(Purchase.total_bv), 0)).filter(
        Purchase.status == PurchaseStatus.COMPLETED.value
    )
    if user_ids is not None:
        q = q.filter(Purchase.user_id.in_(user_ids))
    return {uid: _dec(total) for uid, total in q.group_by(Purchase.user_id).all()}


def _subtree_bv(root_id) -> Decimal:
    ids = subtree_ids(root_id)
    if not ids:
        return ZERO
    return sum(_own_bv_by_user(ids).values(), ZERO)


def recompute_user_bv(user_id: int) -> Dict[str, Decimal]:
    """Recompute a user's BV from purchase rows, ignoring the counters. For audits."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    own = _own_bv_by_user([user.id]).get(user.id, ZERO)
    left = _subtree_bv(user.left_child_id)
    right = _subtree_bv(user.right_child_id)
    return _bv_dict(own, left, right, own + left + right)


def reconcile_bv() -> int:
    """
    Rewrite every user's counters from purchase rows. Returns the number of
    users whose stored counters were wrong.
    """
    own = _own_bv_by_user()
    users = User.query.order_by(User.level.desc(), User.id).all()
    by_id = {u.id: u for u in users}
    totals = {u.id: own.get(u.id, ZERO) for u in users}
    legs = {u.id: {Side.LEFT.value: ZERO, Side.RIGHT.value: ZERO} for u in users}

    # Deepest level first, so each subtree total is final before its parent reads it
    for u in users:
        if u.parent_id in by_id and u.position in (Side.LEFT.value, Side.RIGHT.value):
            legs[u.parent_id][u.position] += totals[u.id]
            totals[u.parent_id] += totals[u.id]

    fixed = 0
    for u in users:
        expected = (
            own.get(u.id, ZERO),
            legs[u.id][Side.LEFT.value],
            legs[u.id][Side.RIGHT.value],
            totals[u.id],
        )
        current = (_dec(u.own_bv), _dec(u.left_bv), _dec(u.right_bv), _dec(u.total_bv))
        if current != expected:
            fixed += 1
            u.own_bv, u.left_bv, u.right_bv, u.total_bv = expected

    db.session.flush()
    logger.info(f"BV reconciliation rewrote counters for {fixed} users")
    return fixed


def bv_stats(user_id: int) -> Dict[str, object]:
    bv = calculate_user_bv(user_id)
    left, right = bv["leftBV"], bv["rightBV"]
    return {
        **{k: str(v) for k, v in bv.items()},
        "weakerLeg": "left" if left < right else "right" if right < left else None,
        "matchedBV": str(min(left, right)),
    }
