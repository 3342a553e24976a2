from decimal import Decimal
from typing import List, Dict, Any, Optional
import logging
from extensions import db
from models import User
from mlm.exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)

MAX_TREE_DEPTH = 10


def _node(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.full_name,
        "email": user.email,
        "position": user.position,
        "level": user.level,
        "status": user.status,
        "currentRank": user.current_rank,
        "ownBV": str(user.own_bv or Decimal("0")),
        "leftBV": str(user.left_bv or Decimal("0")),
        "rightBV": str(user.right_bv or Decimal("0")),
        "totalBV": str(user.total_bv or Decimal("0")),
        "left": None,
        "right": None,
    }


def get_binary_tree(user_id: int, depth: int = 3) -> Dict[str, Any]:
    """
    Nested {left, right} view of the tree rooted at user_id, `depth` levels
    below the root. Loads one level per query.
    """
    if depth < 0 or depth > MAX_TREE_DEPTH:
        raise ValidationError(f"Depth must be between 0 and {MAX_TREE_DEPTH}")

    root = db.session.get(User, user_id)
    if not root:
        raise NotFoundError("User not found")

    root_node = _node(root)
    frontier = [(root, root_node)]
    for _ in range(depth):
        child_ids = []
        for user, _node_dict in frontier:
            child_ids.extend(cid for cid in (user.left_child_id, user.right_child_id) if cid)
        if not child_ids:
            break

        children = {u.id: u for u in User.query.filter(User.id.in_(child_ids)).all()}
        next_frontier = []
        for user, node in frontier:
            for key, cid in (("left", user.left_child_id), ("right", user.right_child_id)):
                child = children.get(cid) if cid else None
                if child is not None:
                    node[key] = _node(child)
                    next_frontier.append((child, node[key]))
        frontier = next_frontier

    return root_node


def subtree_ids(root_id: Optional[int]) -> List[int]:
    """All user ids in the subtree rooted at root_id, root included. Iterative BFS."""
    if root_id is None:
        return []
    result = []
    frontier = [root_id]
    seen = set()
    while frontier:
        frontier = [uid for uid in frontier if uid not in seen]
        if not frontier:
            break
        seen.update(frontier)
        result.extend(frontier)
        rows = (
            db.session.query(User.left_child_id, User.right_child_id)
            .filter(User.id.in_(frontier))
            .all()
        )
        frontier = [cid for row in rows for cid in row if cid is not None]
    return result


def get_downline(user_id: int, max_depth: Optional[int] = None) -> List[Dict[str, Any]]:
    """Every user below user_id in the binary tree, with depth relative to user_id."""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    downline = []
    frontier = [uid for uid in (user.left_child_id, user.right_child_id) if uid]
    depth = 1
    while frontier and (max_depth is None or depth <= max_depth):
        members = User.query.filter(User.id.in_(frontier)).order_by(User.id).all()
        next_frontier = []
        for member in members:
            entry = member.to_dict()
            entry["relativeDepth"] = depth
            downline.append(entry)
            next_frontier.extend(uid for uid in (member.left_child_id, member.right_child_id) if uid)
        frontier = next_frontier
        depth += 1
    return downline


def get_direct_recruits(user_id: int) -> List[Dict[str, Any]]:
    """Users personally sponsored by user_id, wherever they sit in the tree."""
    recruits = (
        User.query.filter(User.sponsor_id == user_id, User.id != user_id)
        .order_by(User.created_at.desc())
        .all()
    )
    return [r.to_dict() for r in recruits]


def get_upline_chain(user_id: int) -> List[User]:
    """Ancestors from parent up to the root."""
    chain = []
    user = db.session.get(User, user_id)
    seen = set()
    while user is not None and user.parent_id is not None and user.parent_id not in seen:
        seen.add(user.parent_id)
        user = db.session.get(User, user.parent_id)
        if user is not None:
            chain.append(user)
    return chain
