import pytest
from extensions import db
from models import User
from mlm.placement import place_user, place_user_at, find_placement
from mlm.exceptions import NotFoundError, ValidationError, ConflictError


def _reload(user):
    return db.session.get(User, user.id)


def test_attaches_directly_when_slot_free(make_user):
    root = make_user()
    child = make_user()

    result = place_user(child.id, root.id, "left")
    db.session.commit()

    root, child = _reload(root), _reload(child)
    assert root.left_child_id == child.id
    assert root.right_child_id is None
    assert child.parent_id == root.id
    assert child.position == "left"
    assert child.level == root.level + 1
    assert result.spillover_depth == 0


def test_sponsor_defaults_to_upline(make_user):
    root = make_user()
    child = make_user(parent=root, side="right")
    assert _reload(child).sponsor_id == root.id


def test_existing_sponsor_is_kept(make_user):
    sponsor = make_user()
    root = make_user()
    child = make_user(sponsor=sponsor, parent=root, side="left")
    assert _reload(child).sponsor_id == sponsor.id


def test_spillover_walks_down_the_same_side(make_user):
    root = make_user()
    a = make_user(parent=root, side="left")
    b = make_user(parent=a, side="left")
    right = make_user(parent=root, side="right")

    newcomer = make_user()
    result = place_user(newcomer.id, root.id, "left")
    db.session.commit()

    newcomer = _reload(newcomer)
    assert newcomer.parent_id == b.id
    assert newcomer.position == "left"
    assert newcomer.level == 3
    assert result.spillover_depth == 2
    # the walk never crosses over to the right leg
    assert _reload(right).left_child_id is None
    assert _reload(a).right_child_id is None


def test_walk_ignores_free_slots_on_the_opposite_side(make_user):
    root = make_user()
    a = make_user(parent=root, side="right")

    newcomer = make_user(parent=root, side="right")

    assert _reload(newcomer).parent_id == a.id
    assert _reload(root).left_child_id is None


def test_parent_pointer_agrees_with_child_pointer(make_user):
    root = make_user()
    users = [make_user(parent=root, side=side) for side in ("left", "right", "left", "right", "left")]

    for user in users:
        user = _reload(user)
        parent = db.session.get(User, user.parent_id)
        assert (parent.left_child_id if user.position == "left" else parent.right_child_id) == user.id


def test_unknown_upline_raises_not_found(make_user):
    user = make_user()
    with pytest.raises(NotFoundError):
        place_user(user.id, 99999, "left")


def test_invalid_side_raises_validation_error(make_user):
    root = make_user()
    user = make_user()
    with pytest.raises(ValidationError):
        place_user(user.id, root.id, "middle")


def test_placing_an_already_placed_user_conflicts(make_user):
    root = make_user()
    other = make_user()
    child = make_user(parent=root, side="left")
    with pytest.raises(ConflictError):
        place_user(child.id, other.id, "left")


def test_find_placement_previews_without_mutating(make_user):
    root = make_user()
    a = make_user(parent=root, side="left")

    preview = find_placement(root.id, "left")

    assert preview.parent_id == a.id
    assert preview.level == 2
    assert preview.spilled_over
    assert _reload(a).left_child_id is None


def test_override_places_at_exact_slot(make_user):
    root = make_user()
    a = make_user(parent=root, side="left")
    user = make_user()

    result = place_user_at(user.id, a.id, "right")
    db.session.commit()

    assert result.parent_id == a.id
    assert _reload(a).right_child_id == user.id
    assert _reload(user).level == 2


def test_override_into_occupied_slot_conflicts(make_user):
    root = make_user()
    make_user(parent=root, side="left")
    user = make_user()

    with pytest.raises(ConflictError):
        place_user_at(user.id, root.id, "left")
