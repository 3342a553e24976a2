from decimal import Decimal
from typing import Dict, Any, Optional, List
import logging
from extensions import db
from models import User, RankAchievement, TransactionType
from mlm.exceptions import NotFoundError
from mlm.wallet import WalletService
from mlm.notifications import notify


logger = logging.getLogger(__name__)

# ==========================================================
#                  RANK TABLE
# ==========================================================
# (name, team BV threshold, one-time bonus), lowest first
RANKS = [
    ("Executive", Decimal("0"), Decimal("0")),
    ("Bronze Star", Decimal("10000"), Decimal("500")),
    ("Gold Star", Decimal("25000"), Decimal("1250")),
    ("Emerald Star", Decimal("50000"), Decimal("2500")),
    ("Ruby Star", Decimal("100000"), Decimal("5000")),
    ("Diamond", Decimal("250000"), Decimal("12500")),
    ("Wise President", Decimal("500000"), Decimal("25000")),
    ("President", Decimal("1000000"), Decimal("50000")),
    ("Ambassador", Decimal("2500000"), Decimal("125000")),
    ("Deputy Director", Decimal("5000000"), Decimal("250000")),
    ("Director", Decimal("10000000"), Decimal("500000")),
    ("Founder", Decimal("25000000"), Decimal("1250000")),
]

RANK_NAMES = [name for name, _, _ in RANKS]
RANK_THRESHOLDS = {name: threshold for name, threshold, _ in RANKS}
RANK_BONUSES = {name: bonus for name, _, bonus in RANKS}
DEFAULT_RANK = RANKS[0][0]


def rank_index(name: Optional[str]) -> int:
    try:
        return RANK_NAMES.index(name)
    except ValueError:
        return 0


def rank_for_bv(team_bv: Decimal, current_rank: str = DEFAULT_RANK) -> Optional[str]:
    """
    Highest rank above current_rank whose threshold team_bv meets, scanning
    from the top. None if the user does not qualify for anything higher.
    """
    floor = rank_index(current_rank)
    for idx in range(len(RANKS) - 1, floor, -1):
        name, threshold, _ = RANKS[idx]
        if team_bv >= threshold:
            return name
    return None


def _team_bv(user: User) -> Decimal:
    return Decimal(str(user.total_bv or 0))


# ==========================================================
#                  RANK EVALUATOR
# ==========================================================

def check_rank_eligibility(user_id: int) -> Dict[str, Any]:
    """Read-only: would this user be promoted right now?"""
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    team_bv = _team_bv(user)
    new_rank = rank_for_bv(team_bv, user.current_rank)
    return {
        "eligible": new_rank is not None,
        "newRank": new_rank,
        "teamBV": str(team_bv),
        "currentRank": user.current_rank,
    }


def evaluate_rank(user_id: int) -> Optional[RankAchievement]:
    """
    Promote user_id if their team BV has crossed a higher threshold. A jump
    over several tiers awards the landed rank only. Ranks never regress and
    each rank's bonus is paid at most once.
    """
    user = (
        User.query.filter_by(id=user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not user:
        raise NotFoundError("User not found")

    team_bv = _team_bv(user)
    new_rank = rank_for_bv(team_bv, user.current_rank)
    if new_rank is None:
        return None

    if RankAchievement.query.filter_by(user_id=user.id, rank=new_rank).first():
        # Already paid; just repair the stored rank
        user.current_rank = new_rank
        return None

    bonus = RANK_BONUSES[new_rank]
    achievement = RankAchievement(
        user_id=user.id,
        rank=new_rank,
        team_bv=team_bv,
        bonus_amount=bonus,
    )
    db.session.add(achievement)
    previous = user.current_rank
    user.current_rank = new_rank
    db.session.flush()

    if bonus > 0:
        WalletService.credit(
            user.id,
            bonus,
            TransactionType.RANK_BONUS,
            description=f"Rank bonus for achieving {new_rank}",
            reference_id=f"rank-{achievement.id}",
        )
    notify(
        user.id,
        "rank_achieved",
        f"Congratulations! You are now {new_rank}",
        f"Your team BV of {team_bv} earned a bonus of {bonus}.",
        related_id=achievement.id,
    )
    logger.info(f"User {user.id} promoted {previous} -> {new_rank} at team BV {team_bv}, bonus {bonus}")
    return achievement


def evaluate_ranks(user_ids: List[int]) -> List[RankAchievement]:
    promotions = []
    for uid in user_ids:
        achievement = evaluate_rank(uid)
        if achievement is not None:
            promotions.append(achievement)
    return promotions


def rank_history(user_id: int) -> List[RankAchievement]:
    return (
        RankAchievement.query.filter_by(user_id=user_id)
        .order_by(RankAchievement.achieved_at.asc(), RankAchievement.id.asc())
        .all()
    )


def next_rank_progress(user_id: int) -> Dict[str, Any]:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    team_bv = _team_bv(user)
    idx = rank_index(user.current_rank)
    if idx >= len(RANKS) - 1:
        return {
            "currentRank": user.current_rank,
            "nextRank": None,
            "teamBV": str(team_bv),
            "requiredBV": None,
            "remainingBV": "0",
            "progressPercent": 100.0,
        }

    next_name, next_threshold, next_bonus = RANKS[idx + 1]
    current_threshold = RANKS[idx][1]
    span = next_threshold - current_threshold
    progress = (team_bv - current_threshold) / span * 100 if span > 0 else Decimal("100")
    progress = max(Decimal("0"), min(Decimal("100"), progress))
    return {
        "currentRank": user.current_rank,
        "nextRank": next_name,
        "teamBV": str(team_bv),
        "requiredBV": str(next_threshold),
        "remainingBV": str(max(Decimal("0"), next_threshold - team_bv)),
        "nextBonus": str(next_bonus),
        "progressPercent": float(round(progress, 2)),
    }


def rank_table() -> List[Dict[str, Any]]:
    return [
        {"rank": name, "requiredBV": str(threshold), "bonus": str(bonus)}
        for name, threshold, bonus in RANKS
    ]
