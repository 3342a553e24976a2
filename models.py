# models.py: Flask-SQLAlchemy models for the Voltvera MLM platform
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from sqlalchemy import UniqueConstraint, Index, CheckConstraint, text
from werkzeug.security import check_password_hash, generate_password_hash
from flask_login import UserMixin
from extensions import db

# ===========================================================
# ENUM DEFINITIONS
# ===========================================================

class UserRole(Enum):
    ADMIN = "admin"
    USER = "user"
    FOUNDER = "founder"


class UserStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class Side(Enum):
    LEFT = "left"
    RIGHT = "right"


class RecruitStatus(Enum):
    AWAITING_UPLINE = "awaiting_upline"
    AWAITING_ADMIN = "awaiting_admin"
    REJECTED = "rejected"


class UplineDecision(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class KycStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class KycDocumentType(Enum):
    PAN_CARD = "pan_card"
    AADHAAR_CARD = "aadhaar_card"
    BANK_STATEMENT = "bank_statement"
    PHOTO = "photo"


class TransactionType(Enum):
    PURCHASE = "purchase"
    PURCHASE_COMMISSION = "purchase_commission"
    RANK_BONUS = "rank_bonus"
    WITHDRAWAL = "withdrawal"
    ADMIN_ADJUSTMENT = "admin_adjustment"


class PurchaseStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReviewStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TicketStatus(Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class EmailTokenType(Enum):
    SIGNUP = "signup"
    INVITATION = "invitation"
    PASSWORD_RESET = "password_reset"


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


def _money(value):
    return str(Decimal(str(value or 0)).quantize(Decimal("0.01")))


# ===========================================================
# BASE MIXIN FOR COMMON FIELDS
# ===========================================================

class BaseMixin:
    """Provides created_at and updated_at timestamps to inheriting models."""
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

# ===========================================================
# USER MODELS
# ===========================================================

class User(UserMixin, db.Model, BaseMixin):
    """Member of the network: account, binary-tree node and BV counters in one row."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(80))
    last_name = db.Column(db.String(80))
    mobile = db.Column(db.String(20))
    role = db.Column(db.String(20), nullable=False, default=UserRole.USER.value, index=True)
    status = db.Column(db.String(20), nullable=False, default=UserStatus.ACTIVE.value, index=True)
    email_verified_at = db.Column(db.DateTime(timezone=True))
    is_hidden = db.Column(db.Boolean, nullable=False, default=False)

    # Binary tree
    sponsor_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), index=True)
    parent_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), index=True)
    left_child_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), unique=True)
    right_child_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), unique=True)
    position = db.Column(db.String(10))
    level = db.Column(db.Integer, nullable=False, default=0)

    # Business volume counters, maintained incrementally on purchase completion
    package_amount = db.Column(db.Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    own_bv = db.Column(db.Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    left_bv = db.Column(db.Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    right_bv = db.Column(db.Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    total_bv = db.Column(db.Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    current_rank = db.Column(db.String(40), nullable=False, default="Executive")

    kyc_status = db.Column(db.String(20), nullable=False, default=KycStatus.PENDING.value)
    registration_date = db.Column(db.DateTime(timezone=True), default=utcnow)
    activation_date = db.Column(db.DateTime(timezone=True))
    last_active_at = db.Column(db.DateTime(timezone=True))

    sponsor = db.relationship('User', remote_side=[id], foreign_keys=[sponsor_id])
    wallet = db.relationship('WalletBalance', uselist=False, back_populates='user', cascade="all,delete-orphan")

    __table_args__ = (
        CheckConstraint("position IS NULL OR position IN ('left', 'right')", name='chk_user_position'),
        Index('idx_user_rank', 'current_rank'),
    )

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_active(self):
        # Flask-Login refuses inactive accounts; pending users may still log in
        return self.status != UserStatus.INACTIVE.value

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    @property
    def is_founder(self):
        return self.role == UserRole.FOUNDER.value

    def child_id(self, side: Side):
        return self.left_child_id if side is Side.LEFT else self.right_child_id

    def set_child_id(self, side: Side, child_id):
        if side is Side.LEFT:
            self.left_child_id = child_id
        else:
            self.right_child_id = child_id

    def to_dict(self, include_tree=True):
        """Serialize user for JSON responses. Never exposes the password hash."""
        result = {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "mobile": self.mobile,
            "role": self.role,
            "status": self.status,
            "emailVerified": self.email_verified_at is not None,
            "kycStatus": self.kyc_status,
            "currentRank": self.current_rank,
            "packageAmount": _money(self.package_amount),
            "registrationDate": _iso(self.registration_date),
            "activationDate": _iso(self.activation_date),
            "lastActiveAt": _iso(self.last_active_at),
        }
        if include_tree:
            result.update({
                "sponsorId": self.sponsor_id,
                "parentId": self.parent_id,
                "leftChildId": self.left_child_id,
                "rightChildId": self.right_child_id,
                "position": self.position,
                "level": self.level,
                "ownBV": _money(self.own_bv),
                "leftBV": _money(self.left_bv),
                "rightBV": _money(self.right_bv),
                "totalBV": _money(self.total_bv),
            })
        return result

    def __repr__(self):
        return f"<User {self.id} {self.email}>"


class EmailToken(db.Model, BaseMixin):
    __tablename__ = 'email_tokens'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), nullable=False, index=True)
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    type = db.Column(db.String(20), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def is_expired(self, now=None):
        now = now or utcnow()
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now > expires_at

# ===========================================================
# RECRUITMENT
# ===========================================================

class PendingRecruit(db.Model, BaseMixin):
    """Prospective recruit waiting on the upline's side choice and the admin's approval."""
    __tablename__ = 'pending_recruits'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), nullable=False, index=True)
    full_name = db.Column(db.String(160), nullable=False)
    mobile = db.Column(db.String(20))
    recruiter_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    upline_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), index=True)
    package_amount = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    position = db.Column(db.String(10))
    status = db.Column(db.String(20), nullable=False, default=RecruitStatus.AWAITING_UPLINE.value, index=True)
    upline_decision = db.Column(db.String(20), nullable=False, default=UplineDecision.PENDING.value)
    upline_decision_at = db.Column(db.DateTime(timezone=True))
    rejection_reason = db.Column(db.Text)
    rejected_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    rejected_at = db.Column(db.DateTime(timezone=True))
    kyc_documents = db.Column(db.JSON, nullable=False, default=list)

    recruiter = db.relationship('User', foreign_keys=[recruiter_id])
    upline = db.relationship('User', foreign_keys=[upline_id])

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "mobile": self.mobile,
            "recruiterId": self.recruiter_id,
            "uplineId": self.upline_id,
            "packageAmount": _money(self.package_amount),
            "position": self.position,
            "status": self.status,
            "uplineDecision": self.upline_decision,
            "uplineDecisionAt": _iso(self.upline_decision_at),
            "rejectionReason": self.rejection_reason,
            "rejectedBy": self.rejected_by,
            "rejectedAt": _iso(self.rejected_at),
            "stagedDocuments": len(self.kyc_documents or []),
            "createdAt": _iso(self.created_at),
        }


class ReferralLink(db.Model):
    __tablename__ = 'referral_links'

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    generated_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    placement_side = db.Column(db.String(10), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    is_used = db.Column(db.Boolean, nullable=False, default=False)
    used_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    used_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    generator = db.relationship('User', foreign_keys=[generated_by])

    def to_dict(self, base_url=""):
        return {
            "id": self.id,
            "token": self.token,
            "url": f"{base_url.rstrip('/')}/complete-referral-registration?ref={self.token}",
            "placementSide": self.placement_side,
            "expiresAt": _iso(self.expires_at),
            "isUsed": self.is_used,
        }

# ===========================================================
# KYC
# ===========================================================

class KYCDocument(db.Model, BaseMixin):
    __tablename__ = 'kyc_documents'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    document_type = db.Column(db.String(30), nullable=False)
    document_url = db.Column(db.String(500))
    document_data = db.Column(db.Text)
    document_content_type = db.Column(db.String(100))
    document_filename = db.Column(db.String(255))
    document_size = db.Column(db.Integer)
    document_number = db.Column(db.String(50))
    status = db.Column(db.String(20), nullable=False, default=KycStatus.PENDING.value, index=True)
    rejection_reason = db.Column(db.Text)
    reviewed_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    reviewed_at = db.Column(db.DateTime(timezone=True))

    user = db.relationship('User', foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint('user_id', 'document_type', name='uq_kyc_user_document_type'),
        CheckConstraint('document_url IS NOT NULL OR document_data IS NOT NULL', name='chk_kyc_has_content'),
    )

    def to_dict(self, include_data=False):
        result = {
            "id": self.id,
            "userId": self.user_id,
            "documentType": self.document_type,
            "documentUrl": self.document_url,
            "documentContentType": self.document_content_type,
            "documentFilename": self.document_filename,
            "documentSize": self.document_size,
            "documentNumber": self.document_number,
            "status": self.status,
            "rejectionReason": self.rejection_reason,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": _iso(self.reviewed_at),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_data:
            result["documentData"] = self.document_data
        return result

# ===========================================================
# WALLET & TRANSACTIONS
# ===========================================================

class WalletBalance(db.Model, BaseMixin):
    __tablename__ = 'wallet_balances'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True, index=True)
    balance = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    total_earnings = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    total_withdrawals = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    version = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship('User', back_populates='wallet')

    # Concurrent read-modify-write on the same wallet raises StaleDataError
    __mapper_args__ = {"version_id_col": version}

    def to_dict(self):
        return {
            "userId": self.user_id,
            "balance": _money(self.balance),
            "totalEarnings": _money(self.total_earnings),
            "totalWithdrawals": _money(self.total_withdrawals),
            "updatedAt": _iso(self.updated_at),
        }


class Transaction(db.Model):
    """Append-only ledger; a wallet balance is the sum of its signed amounts."""
    __tablename__ = 'transactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(30), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    balance_after = db.Column(db.Numeric(18, 2), nullable=False)
    description = db.Column(db.String(255))
    reference_id = db.Column(db.String(120), index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "amount": _money(self.amount),
            "balanceAfter": _money(self.balance_after),
            "description": self.description,
            "referenceId": self.reference_id,
            "createdAt": _iso(self.created_at),
        }

# ===========================================================
# PRODUCTS & PURCHASES
# ===========================================================

class Product(db.Model, BaseMixin):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), unique=True, nullable=False)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(18, 2), nullable=False)
    bv = db.Column(db.Numeric(18, 2), nullable=False)
    gst = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    category = db.Column(db.String(50))
    purchase_type = db.Column(db.String(20), nullable=False, default="first_purchase")
    image_url = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": _money(self.price),
            "bv": _money(self.bv),
            "gst": _money(self.gst),
            "category": self.category,
            "purchaseType": self.purchase_type,
            "imageUrl": self.image_url,
            "isActive": self.is_active,
        }


class Purchase(db.Model, BaseMixin):
    __tablename__ = 'purchases'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    total_amount = db.Column(db.Numeric(18, 2), nullable=False)
    total_bv = db.Column(db.Numeric(18, 2), nullable=False)
    payment_method = db.Column(db.String(20), nullable=False, default="wallet")
    status = db.Column(db.String(20), nullable=False, default=PurchaseStatus.PENDING.value, index=True)
    delivery_address = db.Column(db.Text)
    completed_at = db.Column(db.DateTime(timezone=True))

    product = db.relationship('Product')

    __table_args__ = (
        CheckConstraint('quantity > 0', name='chk_purchase_quantity'),
        Index('idx_purchase_user_status', 'user_id', 'status'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "productId": self.product_id,
            "productName": self.product.name if self.product else None,
            "quantity": self.quantity,
            "totalAmount": _money(self.total_amount),
            "totalBV": _money(self.total_bv),
            "paymentMethod": self.payment_method,
            "status": self.status,
            "deliveryAddress": self.delivery_address,
            "completedAt": _iso(self.completed_at),
            "createdAt": _iso(self.created_at),
        }


class RankAchievement(db.Model):
    __tablename__ = 'rank_achievements'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    rank = db.Column(db.String(40), nullable=False)
    team_bv = db.Column(db.Numeric(18, 2), nullable=False)
    bonus_amount = db.Column(db.Numeric(18, 2), nullable=False)
    achieved_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'rank', name='uq_rank_achievement_user_rank'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "rank": self.rank,
            "teamBV": _money(self.team_bv),
            "bonusAmount": _money(self.bonus_amount),
            "achievedAt": _iso(self.achieved_at),
        }

# ===========================================================
# APPROVAL WORKFLOWS
# ===========================================================

class WithdrawalRequest(db.Model, BaseMixin):
    __tablename__ = 'withdrawal_requests'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    withdrawal_type = db.Column(db.String(20), nullable=False, default="bank")
    bank_account_number = db.Column(db.String(40))
    bank_ifsc = db.Column(db.String(20))
    bank_name = db.Column(db.String(100))
    upi_id = db.Column(db.String(100))
    status = db.Column(db.String(20), nullable=False, default=ReviewStatus.PENDING.value, index=True)
    admin_notes = db.Column(db.Text)
    processed_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    processed_at = db.Column(db.DateTime(timezone=True))

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "amount": _money(self.amount),
            "withdrawalType": self.withdrawal_type,
            "bankAccountNumber": self.bank_account_number,
            "bankIFSC": self.bank_ifsc,
            "bankName": self.bank_name,
            "upiId": self.upi_id,
            "status": self.status,
            "adminNotes": self.admin_notes,
            "processedBy": self.processed_by,
            "processedAt": _iso(self.processed_at),
            "createdAt": _iso(self.created_at),
        }


class FranchiseRequest(db.Model, BaseMixin):
    __tablename__ = 'franchise_requests'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    franchise_type = db.Column(db.String(60), nullable=False)
    business_plan = db.Column(db.Text)
    investment_amount = db.Column(db.Numeric(18, 2))
    status = db.Column(db.String(20), nullable=False, default=ReviewStatus.PENDING.value, index=True)
    admin_notes = db.Column(db.Text)
    reviewed_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    reviewed_at = db.Column(db.DateTime(timezone=True))

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "franchiseType": self.franchise_type,
            "businessPlan": self.business_plan,
            "investmentAmount": _money(self.investment_amount) if self.investment_amount is not None else None,
            "status": self.status,
            "adminNotes": self.admin_notes,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": _iso(self.reviewed_at),
            "createdAt": _iso(self.created_at),
        }


class SupportTicket(db.Model, BaseMixin):
    __tablename__ = 'support_tickets'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    subject = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(50), default="general")
    priority = db.Column(db.String(20), default="medium")
    status = db.Column(db.String(20), nullable=False, default=TicketStatus.OPEN.value, index=True)
    resolution = db.Column(db.Text)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "subject": self.subject,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "status": self.status,
            "resolution": self.resolution,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

# ===========================================================
# NOTIFICATIONS & CONTENT
# ===========================================================

class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(40), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text)
    related_id = db.Column(db.String(64))
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "relatedId": self.related_id,
            "isRead": self.is_read,
            "createdAt": _iso(self.created_at),
        }


class Achiever(db.Model):
    __tablename__ = 'achievers'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    achievement_type = db.Column(db.String(40), nullable=False, index=True)
    period = db.Column(db.String(20), nullable=False, default="monthly")
    amount = db.Column(db.Numeric(18, 2))
    position = db.Column(db.Integer)
    achieved_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    user = db.relationship('User')

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.user.full_name if self.user else None,
            "achievementType": self.achievement_type,
            "period": self.period,
            "amount": _money(self.amount) if self.amount is not None else None,
            "position": self.position,
            "achievedAt": _iso(self.achieved_at),
        }


class Cheque(db.Model):
    __tablename__ = 'cheques'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    cheque_number = db.Column(db.String(40), unique=True, nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    bank_name = db.Column(db.String(100))
    issued_date = db.Column(db.DateTime(timezone=True), default=utcnow)
    status = db.Column(db.String(20), nullable=False, default="issued")

    def to_dict(self):
        return {
            "id": self.id,
            "chequeNumber": self.cheque_number,
            "amount": _money(self.amount),
            "bankName": self.bank_name,
            "issuedDate": _iso(self.issued_date),
            "status": self.status,
        }


class News(db.Model, BaseMixin):
    __tablename__ = 'news'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(40), default="announcement")
    priority = db.Column(db.String(20), default="normal")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "priority": self.priority,
            "isActive": self.is_active,
            "createdBy": self.created_by,
            "createdAt": _iso(self.created_at),
        }
