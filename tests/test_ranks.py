from decimal import Decimal
import pytest
from extensions import db
from models import User, RankAchievement, Transaction
from mlm.ranks import (
    RANKS, rank_for_bv, check_rank_eligibility, evaluate_rank, next_rank_progress,
)
from mlm.wallet import WalletService
from mlm.purchases import create_purchase


def _set_team_bv(user, amount):
    user = db.session.get(User, user.id)
    user.total_bv = Decimal(amount)
    db.session.commit()
    return user


def test_thresholds_strictly_increase():
    thresholds = [threshold for _, threshold, _ in RANKS]
    assert thresholds == sorted(thresholds)
    assert len(set(thresholds)) == len(thresholds)


@pytest.mark.parametrize("bv, expected", [
    ("9999.99", None),
    ("10000", "Bronze Star"),
    ("24999", "Bronze Star"),
    ("25000", "Gold Star"),
    ("1000000", "President"),
    ("25000000", "Founder"),
    ("99000000", "Founder"),
])
def test_rank_for_bv_picks_highest_met_threshold(bv, expected):
    assert rank_for_bv(Decimal(bv), "Executive") == expected


def test_rank_for_bv_never_returns_current_or_lower():
    assert rank_for_bv(Decimal("30000"), "Gold Star") is None
    assert rank_for_bv(Decimal("10000"), "Diamond") is None


def test_eligibility_is_read_only(make_user):
    user = _set_team_bv(make_user(), "12000")

    result = check_rank_eligibility(user.id)

    assert result == {"eligible": True, "newRank": "Bronze Star", "teamBV": "12000.00", "currentRank": "Executive"}
    assert db.session.get(User, user.id).current_rank == "Executive"
    assert RankAchievement.query.count() == 0


def test_promotion_records_achievement_and_credits_bonus(make_user):
    user = _set_team_bv(make_user(), "10000")

    achievement = evaluate_rank(user.id)
    db.session.commit()

    assert achievement.rank == "Bronze Star"
    assert achievement.bonus_amount == Decimal("500")
    assert db.session.get(User, user.id).current_rank == "Bronze Star"
    txn = Transaction.query.filter_by(user_id=user.id, type="rank_bonus").one()
    assert txn.amount == Decimal("500")
    assert WalletService.verify_ledger(user.id)[0]


def test_multi_tier_jump_awards_landed_rank_once(make_user):
    user = _set_team_bv(make_user(), "60000")

    achievement = evaluate_rank(user.id)
    db.session.commit()

    assert achievement.rank == "Emerald Star"
    assert RankAchievement.query.filter_by(user_id=user.id).count() == 1
    assert Transaction.query.filter_by(user_id=user.id).one().amount == Decimal("2500")


def test_rank_never_regresses(make_user):
    user = _set_team_bv(make_user(), "30000")
    evaluate_rank(user.id)
    db.session.commit()

    _set_team_bv(user, "100")
    assert evaluate_rank(user.id) is None
    assert db.session.get(User, user.id).current_rank == "Gold Star"


def test_each_rank_awarded_at_most_once(make_user):
    user = _set_team_bv(make_user(), "10000")
    evaluate_rank(user.id)
    db.session.commit()

    assert evaluate_rank(user.id) is None
    assert RankAchievement.query.filter_by(user_id=user.id, rank="Bronze Star").count() == 1
    assert Transaction.query.filter_by(user_id=user.id, type="rank_bonus").count() == 1


def test_next_rank_progress(make_user):
    user = _set_team_bv(make_user(), "5000")

    progress = next_rank_progress(user.id)

    assert progress["nextRank"] == "Bronze Star"
    assert progress["requiredBV"] == "10000"
    assert progress["remainingBV"] == "5000.00"
    assert progress["progressPercent"] == 50.0


def test_purchase_promotes_ancestors(make_user, make_product, fund):
    root = make_user()
    child = make_user(parent=root, side="left")
    product = make_product(price="20000.00", bv="10000.00")
    fund(child, "20000")

    create_purchase(child, product.id)
    db.session.commit()

    assert db.session.get(User, root.id).current_rank == "Bronze Star"
    assert db.session.get(User, child.id).current_rank == "Bronze Star"
