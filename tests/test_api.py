from decimal import Decimal
from extensions import db
from models import User, EmailToken, PendingRecruit, WalletBalance


# ==========================================================
#                  AUTH & ACCESS
# ==========================================================
def test_health(client):
    assert client.get("/health").get_json()["status"] == "ok"


def test_login_and_session_user(client, make_user, login):
    user = make_user(email="alice@example.com")

    resp = login(user)
    assert resp.get_json()["user"]["email"] == "alice@example.com"

    me = client.get("/api/auth/user")
    assert me.status_code == 200
    assert me.get_json()["id"] == user.id
    assert "passwordHash" not in me.get_json()


def test_bad_password_is_401(client, make_user):
    user = make_user()
    resp = client.post("/api/auth/login", json={"email": user.email, "password": "wrong"})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid email or password"}


def test_anonymous_is_401(client, app):
    assert client.get("/api/wallet").status_code == 401
    assert client.get("/api/users").status_code == 401


def test_member_cannot_reach_admin_routes(client, make_user, login):
    login(make_user())
    resp = client.get("/api/users")
    assert resp.status_code == 403
    assert client.get("/api/founder/hidden-ids").status_code == 403


def test_schema_errors_list_fields(client, make_user, login):
    login(make_user())
    resp = client.post("/api/withdrawals", json={"amount": "-1", "withdrawalType": "bank"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "Validation error"
    assert any(e["field"] == "amount" for e in body["errors"])


def test_signup_verify_and_reset(client, app):
    resp = client.post("/api/auth/signup", json={
        "email": "New.Member@Example.com", "password": "longenough", "firstName": "New",
    })
    assert resp.status_code == 201
    user = db.session.get(User, resp.get_json()["userId"])
    assert user.email == "new.member@example.com"
    assert user.status == "pending"
    assert user.email_verified_at is None

    token = EmailToken.query.filter_by(email=user.email, type="signup").one().token
    assert client.post("/api/auth/verify-email", json={"token": token}).status_code == 200
    assert db.session.get(User, user.id).email_verified_at is not None
    # tokens are single use
    assert client.post("/api/auth/verify-email", json={"token": token}).status_code == 400

    assert client.post("/api/auth/forgot-password", json={"email": user.email}).status_code == 200
    reset = EmailToken.query.filter_by(email=user.email, type="password_reset").one().token
    resp = client.post("/api/auth/reset-password", json={"token": reset, "newPassword": "brandnewpass"})
    assert resp.status_code == 200
    assert db.session.get(User, user.id).check_password("brandnewpass")


def test_forgot_password_does_not_leak_accounts(client, app):
    resp = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert resp.status_code == 200
    assert EmailToken.query.count() == 0


def test_invitation_flow(client, make_user, login):
    admin = make_user(role="admin")
    login(admin)
    resp = client.post("/api/users", json={"email": "invitee@example.com", "firstName": "Invi"})
    assert resp.status_code == 201
    assert resp.get_json()["status"] == "pending"
    client.post("/api/auth/logout")

    token = EmailToken.query.filter_by(email="invitee@example.com", type="invitation").one().token
    assert client.get(f"/api/auth/validate-invitation?token={token}").get_json()["valid"] is True

    resp = client.post("/api/auth/complete-invitation", json={"token": token, "password": "mypassword"})
    assert resp.status_code == 200
    assert resp.get_json()["user"]["status"] == "active"
    assert client.get(f"/api/auth/validate-invitation?token={token}").get_json()["valid"] is False


# ==========================================================
#                  USERS
# ==========================================================
def test_delete_user_with_downline_is_refused(client, make_user, login):
    admin = make_user(role="admin")
    parent = make_user()
    make_user(parent=parent, side="left")
    login(admin)

    resp = client.delete(f"/api/users/{parent.id}")
    assert resp.status_code == 409
    assert db.session.get(User, parent.id) is not None


def test_admin_cannot_delete_self(client, make_user, login):
    admin = make_user(role="admin")
    login(admin)
    assert client.delete(f"/api/users/{admin.id}").status_code == 409


def test_deleting_a_leaf_takes_its_bv_off_the_ancestors(client, make_user, make_product, fund, login):
    admin = make_user(role="admin")
    root = make_user()
    mid = make_user(parent=root, side="right")
    leaf = make_user(parent=mid, side="left")
    product = make_product(price="100.00", bv="40.00")
    fund(leaf, "1000")
    login(leaf)
    assert client.post("/api/purchases", json={"productId": product.id, "quantity": 2}).status_code == 201
    assert db.session.get(User, root.id).right_bv == Decimal("80")

    login(admin)
    assert client.delete(f"/api/users/{leaf.id}").status_code == 200

    root = db.session.get(User, root.id)
    assert root.right_bv == Decimal("0")
    assert root.total_bv == Decimal("0")
    assert db.session.get(User, mid.id).left_bv == Decimal("0")
    for user_id in (root.id, mid.id):
        audit = client.get(f"/api/admin/bv/{user_id}/audit").get_json()
        assert audit["consistent"] is True


def test_admin_cannot_change_founder_role(client, make_user, login):
    founder = make_user(role="founder")
    admin = make_user(role="admin")
    login(admin)

    resp = client.patch(f"/api/users/{founder.id}", json={"role": "user"})
    assert resp.status_code == 403
    assert db.session.get(User, founder.id).role == "founder"

    # other fields on a founder stay editable
    resp = client.patch(f"/api/users/{founder.id}", json={"mobile": "9876543210"})
    assert resp.status_code == 200
    assert resp.get_json()["mobile"] == "9876543210"


def test_member_edits_own_profile(client, make_user, login):
    user = make_user(first_name="Old")
    login(user)

    resp = client.patch("/api/profile", json={
        "firstName": "New",
        "mobile": "9123456780",
        "role": "admin",
        "status": "inactive",
        "packageAmount": "99999",
    })
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["firstName"] == "New"
    assert body["mobile"] == "9123456780"
    assert body["role"] == "user"
    assert body["status"] == "active"

    stored = db.session.get(User, user.id)
    assert stored.first_name == "New"
    assert stored.role == "user"
    assert client.get("/api/profile").get_json()["firstName"] == "New"


def test_profile_needs_login_and_valid_fields(client, make_user, login):
    assert client.patch("/api/profile", json={"firstName": "X"}).status_code == 401

    login(make_user())
    resp = client.patch("/api/profile", json={"firstName": ""})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Validation error"


def test_hidden_ids_only_visible_to_founder(client, make_user, login):
    founder = make_user(role="founder")
    admin = make_user(role="admin")
    login(founder)

    resp = client.post("/api/founder/create-hidden-id", json={
        "email": "shadow@example.com", "firstName": "Shadow", "parentId": founder.id, "position": "left",
    })
    assert resp.status_code == 201
    body = resp.get_json()
    hidden_id = body["user"]["id"]
    assert body["loginCredentials"]["email"] == "shadow@example.com"
    assert body["placement"]["parentId"] == founder.id
    assert db.session.get(User, founder.id).left_child_id == hidden_id

    founder_view = {u["id"] for u in client.get("/api/users").get_json()["users"]}
    assert hidden_id in founder_view

    login(admin)
    admin_view = {u["id"] for u in client.get("/api/users").get_json()["users"]}
    assert hidden_id not in admin_view
    assert client.get(f"/api/users/{hidden_id}").status_code == 404


def test_create_with_placement_rejects_taken_slot(client, make_user, login):
    admin = make_user(role="admin")
    parent = make_user()
    make_user(parent=parent, side="left")
    login(admin)

    resp = client.post("/api/admin/users/create-with-placement", json={
        "email": "placed@example.com", "firstName": "Placed", "parentId": parent.id, "position": "left",
    })
    assert resp.status_code == 409
    assert User.query.filter_by(email="placed@example.com").count() == 0

    resp = client.post("/api/admin/users/create-with-placement", json={
        "email": "placed@example.com", "firstName": "Placed", "parentId": parent.id, "position": "right",
    })
    assert resp.status_code == 201
    assert resp.get_json()["user"]["parentId"] == parent.id


# ==========================================================
#                  RECRUITMENT
# ==========================================================
def test_recruit_flow_over_http(client, make_user, login):
    admin = make_user(role="admin")
    upline = make_user()
    recruiter = make_user(parent=upline, side="left", sponsor=upline)

    login(recruiter)
    resp = client.post("/api/recruitment/register", json={
        "email": "recruit@example.com",
        "fullName": "Ravi Kumar",
        "kycDocuments": [{"documentType": "pan_card", "documentUrl": "https://files.example.com/pan.jpg"}],
    })
    assert resp.status_code == 201
    recruit_id = resp.get_json()["recruit"]["id"]

    login(admin)
    resp = client.post(f"/api/admin/pending-recruits/{recruit_id}/approve", json={})
    assert resp.status_code == 409

    login(upline)
    assert [r["id"] for r in client.get("/api/upline/pending-recruits").get_json()] == [recruit_id]
    resp = client.post(f"/api/upline/pending-recruits/{recruit_id}/decide", json={"decision": "approved"})
    assert resp.status_code == 400
    resp = client.post(f"/api/upline/pending-recruits/{recruit_id}/decide",
                       json={"decision": "approved", "position": "right"})
    assert resp.status_code == 200
    assert resp.get_json()["recruit"]["status"] == "awaiting_admin"

    login(admin)
    resp = client.post(f"/api/admin/pending-recruits/{recruit_id}/approve", json={})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["placement"]["parentId"] == upline.id
    assert body["placement"]["position"] == "right"
    assert body["user"]["sponsorId"] == recruiter.id
    assert db.session.get(PendingRecruit, recruit_id) is None


def test_placement_preview_does_not_mutate(client, make_user, login):
    root = make_user()
    left = make_user(parent=root, side="left")
    login(root)

    resp = client.get("/api/placement/preview?side=left")
    assert resp.status_code == 200
    assert resp.get_json()["parentId"] == left.id
    assert db.session.get(User, left.id).left_child_id is None

    assert client.get("/api/placement/preview?side=up").status_code == 400


# ==========================================================
#                  REFERRAL LINKS
# ==========================================================
def test_referral_link_over_http(client, make_user, login):
    owner = make_user()
    login(owner)
    resp = client.post("/api/referral/generate", json={"placementSide": "right"})
    assert resp.status_code == 201
    token = resp.get_json()["token"]
    client.post("/api/auth/logout")

    check = client.get(f"/api/referral/validate?token={token}").get_json()
    assert check["valid"] is True
    assert check["placementSide"] == "right"

    resp = client.post("/api/referral/complete-registration", json={
        "token": token, "email": "joiner@example.com", "firstName": "Joi",
    })
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["loginCredentials"]["email"] == "joiner@example.com"
    assert db.session.get(User, owner.id).right_child_id == body["user"]["id"]

    again = client.post("/api/referral/complete-registration", json={
        "token": token, "email": "second@example.com", "firstName": "Sec",
    })
    assert again.status_code == 400


# ==========================================================
#                  PURCHASES, WALLET, WITHDRAWALS
# ==========================================================
def test_wallet_purchase_credits_bv_and_commission(client, make_user, make_product, fund, login):
    sponsor = make_user()
    buyer = make_user(parent=sponsor, side="left")
    product = make_product(price="1000.00", bv="400.00")
    fund(buyer, "5000")
    login(buyer)

    resp = client.post("/api/purchases", json={"productId": product.id, "quantity": 2})
    assert resp.status_code == 201
    assert resp.get_json()["status"] == "completed"
    assert resp.get_json()["totalBV"] == "800.00"

    wallet = client.get("/api/wallet").get_json()
    assert wallet["balance"] == "3000.00"

    sponsor = db.session.get(User, sponsor.id)
    assert sponsor.left_bv == Decimal("800")
    sponsor_wallet = WalletBalance.query.filter_by(user_id=sponsor.id).one()
    assert sponsor_wallet.balance == Decimal("200.00")


def test_purchase_with_short_wallet_is_refused(client, make_user, make_product, login):
    buyer = make_user()
    product = make_product(price="1000.00", bv="400.00")
    login(buyer)

    resp = client.post("/api/purchases", json={"productId": product.id})
    assert resp.status_code == 400
    assert client.get("/api/purchases").get_json() == []


def test_external_purchase_completes_by_admin(client, make_user, make_product, login):
    admin = make_user(role="admin")
    buyer = make_user()
    product = make_product(price="1000.00", bv="400.00")
    login(buyer)
    purchase_id = client.post("/api/purchases", json={
        "productId": product.id, "paymentMethod": "external",
    }).get_json()["id"]

    login(admin)
    resp = client.post(f"/api/admin/purchases/{purchase_id}/complete")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "completed"
    assert db.session.get(User, buyer.id).own_bv == Decimal("400")

    assert client.post(f"/api/admin/purchases/{purchase_id}/complete").status_code == 409


def test_withdrawal_review_over_http(client, make_user, fund, login):
    admin = make_user(role="admin")
    user = make_user()
    fund(user, "3000")
    login(user)

    resp = client.post("/api/withdrawals", json={
        "amount": "1000", "withdrawalType": "bank", "bankAccountNumber": "000123", "bankIFSC": "SBIN0000001",
    })
    assert resp.status_code == 201
    withdrawal_id = resp.get_json()["id"]
    assert client.get("/api/wallet").get_json()["pendingWithdrawals"] == "1000.00"

    login(admin)
    resp = client.patch(f"/api/admin/withdrawals/{withdrawal_id}", json={"status": "approved"})
    assert resp.status_code == 200
    assert WalletBalance.query.filter_by(user_id=user.id).one().balance == Decimal("2000.00")

    resp = client.patch(f"/api/admin/withdrawals/{withdrawal_id}", json={"status": "rejected"})
    assert resp.status_code == 409

    ledger = client.get(f"/api/admin/ledger/{user.id}/verify").get_json()
    assert ledger["consistent"] is True


# ==========================================================
#                  SUPPORT & FRANCHISE
# ==========================================================
def test_support_ticket_transitions(client, make_user, login):
    admin = make_user(role="admin")
    user = make_user()
    login(user)
    ticket_id = client.post("/api/support-tickets", json={
        "subject": "Delivery", "description": "Purifier not delivered",
    }).get_json()["id"]

    login(admin)
    url = f"/api/admin/support-tickets/{ticket_id}"
    assert client.patch(url, json={"status": "in_progress"}).status_code == 200
    assert client.patch(url, json={"status": "open"}).status_code == 409
    resp = client.patch(url, json={"status": "resolved", "resolution": "Shipped"})
    assert resp.status_code == 200
    assert client.patch(url, json={"status": "closed"}).status_code == 200
    assert client.patch(url, json={"status": "open"}).status_code == 409
    assert client.patch(url, json={"status": "archived"}).status_code == 400


def test_franchise_review_notifies(client, make_user, login):
    admin = make_user(role="admin")
    user = make_user()
    login(user)
    request_id = client.post("/api/franchise-requests", json={"franchiseType": "district"}).get_json()["id"]

    login(admin)
    resp = client.patch(f"/api/admin/franchise-requests/{request_id}", json={"status": "approved"})
    assert resp.status_code == 200
    assert client.patch(f"/api/admin/franchise-requests/{request_id}",
                        json={"status": "rejected"}).status_code == 409

    login(user)
    notes = client.get("/api/notifications").get_json()
    assert notes["unread"] >= 1
