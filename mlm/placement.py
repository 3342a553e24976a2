from typing import Optional
import logging
from sqlalchemy.exc import IntegrityError
from extensions import db
from models import User, Side
from mlm.exceptions import ValidationError, NotFoundError, ConflictError
from mlm.volume import attach_subtree_bv
from mlm.ranks import evaluate_ranks


logger = logging.getLogger(__name__)

# Walk guard: a corrupt pointer cycle must not spin forever
MAX_WALK_DEPTH = 10000


class PlacementResult:
    """Where a user landed (or would land) in the binary tree."""

    def __init__(self, user_id, parent_id, position, level, spillover_depth, sponsor_id=None):
        self.user_id = user_id
        self.parent_id = parent_id
        self.position = position
        self.level = level
        self.spillover_depth = spillover_depth
        self.sponsor_id = sponsor_id

    @property
    def spilled_over(self):
        return self.spillover_depth > 0

    def to_dict(self):
        return {
            "userId": self.user_id,
            "parentId": self.parent_id,
            "position": self.position,
            "level": self.level,
            "sponsorId": self.sponsor_id,
            "spilledOver": self.spilled_over,
            "spilloverDepth": self.spillover_depth,
        }


def parse_side(value) -> Side:
    if isinstance(value, Side):
        return value
    try:
        return Side(str(value).strip().lower())
    except (ValueError, AttributeError):
        raise ValidationError("Position must be 'left' or 'right'")


def _locked_user(user_id: int) -> Optional[User]:
    # populate_existing so a row already in the identity map is re-read under the lock
    return (
        User.query.filter_by(id=user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _walk_to_free_slot(start: User, side: Side, lock: bool):
    """Follow `side` pointers down from start until a node with that slot free."""
    node = start
    hops = 0
    while True:
        child_id = node.child_id(side)
        if child_id is None:
            return node, hops
        hops += 1
        if hops > MAX_WALK_DEPTH:
            raise ConflictError("Binary tree walk exceeded maximum depth")
        node = _locked_user(child_id) if lock else db.session.get(User, child_id)
        if node is None:
            raise ConflictError(f"Binary tree is inconsistent: user {child_id} is missing")


def _load_placeable(new_user_id: int) -> User:
    new_user = _locked_user(new_user_id)
    if not new_user:
        raise NotFoundError("User to place not found")
    if new_user.parent_id is not None:
        raise ConflictError("User is already placed in the tree")
    if new_user.left_child_id is not None or new_user.right_child_id is not None:
        raise ConflictError("User already heads a subtree and cannot be re-placed")
    return new_user


def _attach(new_user: User, parent: User, side: Side, sponsor_id, hops: int) -> PlacementResult:
    if parent.id == new_user.id:
        raise ValidationError("A user cannot be placed under themselves")

    parent.set_child_id(side, new_user.id)
    new_user.parent_id = parent.id
    new_user.position = side.value
    new_user.level = (parent.level or 0) + 1
    if sponsor_id is not None:
        new_user.sponsor_id = sponsor_id

    try:
        db.session.flush()
    except IntegrityError as e:
        logger.warning(f"Concurrent placement rejected for user {new_user.id} under {parent.id}: {e.orig}")
        raise ConflictError("Placement slot was taken by a concurrent request, please retry")

    # a user placed late may already carry BV from earlier purchases
    ancestors = attach_subtree_bv(new_user)
    if ancestors:
        evaluate_ranks(ancestors)

    logger.info(
        f"Placed user {new_user.id} under {parent.id} on {side.value} "
        f"(level {new_user.level}, spillover depth {hops})"
    )
    return PlacementResult(new_user.id, parent.id, side.value, new_user.level, hops, new_user.sponsor_id)


# ==========================================================
#                  PLACEMENT RESOLVER
# ==========================================================

def place_user(new_user_id: int, upline_id: int, desired_side, sponsor_id: Optional[int] = None) -> PlacementResult:
    """
    Attach new_user under upline on desired_side, spilling over down the same
    side when the slot is taken. Runs inside the caller's transaction; the
    caller commits.

    The sponsor defaults to the upline when the user has none yet.
    """
    side = parse_side(desired_side)

    upline = _locked_user(upline_id)
    if not upline:
        raise NotFoundError(f"Upline user {upline_id} not found")

    new_user = _load_placeable(new_user_id)
    if new_user.id == upline.id:
        raise ValidationError("A user cannot be placed under themselves")

    if sponsor_id is None and new_user.sponsor_id is None:
        sponsor_id = upline.id

    parent, hops = _walk_to_free_slot(upline, side, lock=True)
    return _attach(new_user, parent, side, sponsor_id, hops)


def place_user_at(new_user_id: int, parent_id: int, side, sponsor_id: Optional[int] = None) -> PlacementResult:
    """Founder override: attach at exactly (parent, side), never spilling over."""
    side = parse_side(side)

    parent = _locked_user(parent_id)
    if not parent:
        raise NotFoundError(f"Parent user {parent_id} not found")

    new_user = _load_placeable(new_user_id)
    if parent.child_id(side) is not None:
        raise ConflictError(f"The {side.value} position under user {parent_id} is already occupied")

    if sponsor_id is None and new_user.sponsor_id is None:
        sponsor_id = parent.id

    return _attach(new_user, parent, side, sponsor_id, 0)


def find_placement(upline_id: int, side) -> PlacementResult:
    """Preview where a new user would land under upline. Does not mutate or lock."""
    side = parse_side(side)
    upline = db.session.get(User, upline_id)
    if not upline:
        raise NotFoundError(f"Upline user {upline_id} not found")

    parent, hops = _walk_to_free_slot(upline, side, lock=False)
    return PlacementResult(None, parent.id, side.value, (parent.level or 0) + 1, hops, upline.id)


def available_positions(user: User) -> dict:
    return {
        "left": user.left_child_id is None,
        "right": user.right_child_id is None,
    }
