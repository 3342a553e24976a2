from decimal import Decimal
from extensions import db
from models import User, Purchase
from mlm.purchases import create_purchase, complete_purchase
from mlm.volume import calculate_user_bv, recompute_user_bv, reconcile_bv, apply_purchase_bv
from mlm.placement import place_user_at


def _tree(make_user):
    root = make_user()
    a = make_user(parent=root, side="left")
    b = make_user(parent=a, side="right")
    c = make_user(parent=root, side="right")
    return root, a, b, c


def test_counters_start_at_zero(make_user):
    user = make_user()
    assert calculate_user_bv(user.id) == {
        "ownBV": Decimal("0"), "leftBV": Decimal("0"), "rightBV": Decimal("0"), "totalBV": Decimal("0"),
    }


def test_completed_purchase_raises_every_ancestor_by_purchase_bv(make_user, make_product):
    root, a, b, c = _tree(make_user)
    product = make_product(price="1000.00", bv="500.00")

    purchase = create_purchase(b, product.id, quantity=3, payment_method="external")
    assert purchase.total_bv == Decimal("1500.00")
    # pending purchases do not count
    assert calculate_user_bv(root.id)["totalBV"] == Decimal("0")

    complete_purchase(purchase.id)
    db.session.commit()

    assert calculate_user_bv(b.id) == {
        "ownBV": Decimal("1500"), "leftBV": Decimal("0"), "rightBV": Decimal("0"), "totalBV": Decimal("1500"),
    }
    a_bv = calculate_user_bv(a.id)
    assert a_bv["rightBV"] == Decimal("1500")
    assert a_bv["leftBV"] == Decimal("0")
    assert a_bv["totalBV"] == Decimal("1500")

    root_bv = calculate_user_bv(root.id)
    assert root_bv["leftBV"] == Decimal("1500")
    assert root_bv["rightBV"] == Decimal("0")
    assert root_bv["totalBV"] == Decimal("1500")

    assert calculate_user_bv(c.id)["totalBV"] == Decimal("0")


def test_total_is_own_plus_both_legs(make_user, make_product):
    root, a, b, c = _tree(make_user)
    product = make_product(price="200.00", bv="100.00")

    for buyer in (root, a, b, c):
        create_purchase(buyer, product.id, payment_method="external")
    for p in Purchase.query.all():
        complete_purchase(p.id)
    db.session.commit()

    bv = calculate_user_bv(root.id)
    assert bv["ownBV"] == Decimal("100")
    assert bv["leftBV"] == Decimal("200")
    assert bv["rightBV"] == Decimal("100")
    assert bv["totalBV"] == bv["ownBV"] + bv["leftBV"] + bv["rightBV"]


def test_reads_are_idempotent(make_user):
    user = make_user()
    apply_purchase_bv(db.session.get(User, user.id), Decimal("250"))
    db.session.commit()
    assert calculate_user_bv(user.id) == calculate_user_bv(user.id)


def test_recompute_matches_materialized_counters(make_user, make_product, fund):
    root, a, b, c = _tree(make_user)
    product = make_product(price="100.00", bv="40.00")
    fund(b, "1000")
    fund(c, "1000")

    create_purchase(b, product.id, quantity=2)
    create_purchase(c, product.id, quantity=1)
    db.session.commit()

    for user in (root, a, b, c):
        assert recompute_user_bv(user.id) == calculate_user_bv(user.id)


def test_reconcile_repairs_drifted_counters(make_user, make_product, fund):
    root, a, b, c = _tree(make_user)
    product = make_product(price="100.00", bv="40.00")
    fund(b, "1000")
    create_purchase(b, product.id)
    db.session.commit()

    drifted = db.session.get(User, root.id)
    drifted.left_bv = Decimal("999")
    drifted.total_bv = Decimal("999")
    db.session.commit()

    fixed = reconcile_bv()
    db.session.commit()

    assert fixed == 1
    assert calculate_user_bv(root.id)["leftBV"] == Decimal("40")
    assert calculate_user_bv(root.id)["totalBV"] == Decimal("40")


def test_placing_a_user_who_already_bought_carries_their_bv(make_user, make_product, fund):
    root = make_user()
    loner = make_user()
    product = make_product(price="10000.00", bv="5000.00")
    fund(loner, "20000")
    create_purchase(loner, product.id, quantity=2)
    db.session.commit()
    assert calculate_user_bv(root.id)["totalBV"] == Decimal("0")

    place_user_at(loner.id, root.id, "left")
    db.session.commit()

    root_bv = calculate_user_bv(root.id)
    assert root_bv["leftBV"] == Decimal("10000")
    assert root_bv["totalBV"] == Decimal("10000")
    assert root_bv == recompute_user_bv(root.id)
    assert calculate_user_bv(loner.id)["ownBV"] == Decimal("10000")
    # the new ancestor is re-ranked on the carried BV
    assert db.session.get(User, root.id).current_rank == "Bronze Star"
