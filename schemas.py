# schemas.py: pydantic request bodies. JSON keys are camelCase, attributes snake_case.
import re
from decimal import Decimal
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

Side = Literal["left", "right"]


class RequestSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


def _email(value: str) -> str:
    value = (value or "").strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Invalid email address")
    return value


class EmailMixin(RequestSchema):
    email: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return _email(v)


# ==========================================================
#                  AUTH
# ==========================================================
class LoginRequest(EmailMixin):
    password: str = Field(min_length=1)
    remember_me: bool = False


class SignupRequest(EmailMixin):
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(default="", max_length=80)
    mobile: Optional[str] = Field(default=None, max_length=20)


class ChangePasswordRequest(RequestSchema):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class ForgotPasswordRequest(EmailMixin):
    pass


class ResetPasswordRequest(RequestSchema):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class CompleteInvitationRequest(RequestSchema):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    mobile: Optional[str] = None


# ==========================================================
#                  USERS (ADMIN)
# ==========================================================
class CreateUserRequest(EmailMixin):
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(default="", max_length=80)
    mobile: Optional[str] = None
    role: Literal["admin", "user"] = "user"
    sponsor_id: Optional[int] = None
    package_amount: Decimal = Field(default=Decimal("0"), ge=0)


class UpdateUserRequest(RequestSchema):
    first_name: Optional[str] = Field(default=None, max_length=80)
    last_name: Optional[str] = Field(default=None, max_length=80)
    mobile: Optional[str] = None
    role: Optional[Literal["admin", "user"]] = None
    status: Optional[Literal["active", "inactive", "pending"]] = None
    package_amount: Optional[Decimal] = Field(default=None, ge=0)


class UpdateProfileRequest(RequestSchema):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=80)
    last_name: Optional[str] = Field(default=None, max_length=80)
    mobile: Optional[str] = Field(default=None, max_length=20)


class CreateUserWithPlacementRequest(EmailMixin):
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(default="", max_length=80)
    mobile: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)
    parent_id: int
    position: Side
    sponsor_id: Optional[int] = None
    package_amount: Decimal = Field(default=Decimal("0"), ge=0)


class WalletAdjustmentRequest(RequestSchema):
    user_id: int
    amount: Decimal
    description: str = Field(min_length=1, max_length=255)

    @field_validator("amount")
    @classmethod
    def non_zero(cls, v):
        if v == 0:
            raise ValueError("Amount must not be zero")
        return v


# ==========================================================
#                  KYC
# ==========================================================
class KycDocumentPayload(RequestSchema):
    document_type: Literal["pan_card", "aadhaar_card", "bank_statement", "photo"]
    document_url: Optional[str] = Field(default=None, max_length=500)
    document_data: Optional[str] = None
    document_content_type: Optional[str] = None
    document_filename: Optional[str] = None
    document_size: Optional[int] = Field(default=None, ge=0)
    document_number: Optional[str] = Field(default=None, max_length=50)

    @model_validator(mode="after")
    def exactly_one_source(self):
        if bool(self.document_url) == bool(self.document_data):
            raise ValueError("Provide exactly one of documentUrl or documentData")
        return self


class KycReviewRequest(RequestSchema):
    status: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = None

    @model_validator(mode="after")
    def reason_when_rejected(self):
        if self.status == "rejected" and not self.rejection_reason:
            raise ValueError("A rejection reason is required")
        return self


# ==========================================================
#                  RECRUITMENT & REFERRALS
# ==========================================================
class RecruitRequest(EmailMixin):
    full_name: str = Field(min_length=1, max_length=160)
    mobile: Optional[str] = Field(default=None, max_length=20)
    package_amount: Decimal = Field(default=Decimal("0"), ge=0)
    kyc_documents: List[KycDocumentPayload] = Field(default_factory=list)


class UplineDecisionRequest(RequestSchema):
    decision: Literal["approved", "rejected"]
    position: Optional[Side] = None
    reason: Optional[str] = None

    @model_validator(mode="after")
    def position_when_approved(self):
        if self.decision == "approved" and not self.position:
            raise ValueError("A position is required to approve a recruit")
        return self


class ApproveRecruitRequest(RequestSchema):
    package_amount: Optional[Decimal] = Field(default=None, ge=0)


class RejectRecruitRequest(RequestSchema):
    reason: str = Field(min_length=1)


class ReferralLinkRequest(RequestSchema):
    placement_side: Side


class ReferralRegistrationRequest(EmailMixin):
    token: str = Field(min_length=1)
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(default="", max_length=80)
    mobile: Optional[str] = Field(default=None, max_length=20)
    password: Optional[str] = Field(default=None, min_length=8)
    kyc_documents: List[KycDocumentPayload] = Field(default_factory=list)


# ==========================================================
#                  FOUNDER
# ==========================================================
class HiddenIdRequest(EmailMixin):
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(default="", max_length=80)
    password: Optional[str] = Field(default=None, min_length=8)
    parent_id: int
    position: Side


class PlacementOverrideRequest(RequestSchema):
    user_id: int
    parent_id: int
    position: Side


# ==========================================================
#                  PRODUCTS & PURCHASES
# ==========================================================
class ProductRequest(RequestSchema):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    price: Decimal = Field(gt=0)
    bv: Decimal = Field(ge=0)
    gst: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    category: Optional[str] = None
    purchase_type: Literal["first_purchase", "second_purchase"] = "first_purchase"
    image_url: Optional[str] = None
    is_active: bool = True


class ProductUpdateRequest(RequestSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, gt=0)
    bv: Optional[Decimal] = Field(default=None, ge=0)
    gst: Optional[Decimal] = Field(default=None, ge=0, le=100)
    category: Optional[str] = None
    purchase_type: Optional[Literal["first_purchase", "second_purchase"]] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class PurchaseRequest(RequestSchema):
    product_id: int
    quantity: int = Field(default=1, gt=0, le=1000)
    payment_method: Literal["wallet", "external"] = "wallet"
    delivery_address: Optional[str] = None


# ==========================================================
#                  WITHDRAWALS, FRANCHISE, SUPPORT
# ==========================================================
class WithdrawalCreateRequest(RequestSchema):
    amount: Decimal = Field(gt=0)
    withdrawal_type: Literal["bank", "upi"] = "bank"
    bank_account_number: Optional[str] = Field(default=None, max_length=40)
    bank_ifsc: Optional[str] = Field(default=None, max_length=20, alias="bankIFSC")
    bank_name: Optional[str] = Field(default=None, max_length=100)
    upi_id: Optional[str] = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def account_details(self):
        if self.withdrawal_type == "bank" and not (self.bank_account_number and self.bank_ifsc):
            raise ValueError("Bank withdrawals need bankAccountNumber and bankIFSC")
        if self.withdrawal_type == "upi" and not self.upi_id:
            raise ValueError("UPI withdrawals need upiId")
        return self


class ReviewRequest(RequestSchema):
    status: str = Field(min_length=1)
    admin_notes: Optional[str] = None


class FranchiseCreateRequest(RequestSchema):
    franchise_type: str = Field(min_length=1, max_length=60)
    business_plan: Optional[str] = None
    investment_amount: Optional[Decimal] = Field(default=None, ge=0)


class SupportTicketCreateRequest(RequestSchema):
    subject: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    category: str = "general"
    priority: Literal["low", "medium", "high", "urgent"] = "medium"


class TicketUpdateRequest(RequestSchema):
    status: str = Field(min_length=1)
    resolution: Optional[str] = None


# ==========================================================
#                  CONTENT
# ==========================================================
class NewsRequest(RequestSchema):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    category: str = "announcement"
    priority: Literal["low", "normal", "high"] = "normal"
    is_active: bool = True


class AchieverRequest(RequestSchema):
    user_id: int
    achievement_type: str = Field(min_length=1, max_length=40)
    period: Literal["weekly", "monthly", "yearly"] = "monthly"
    amount: Optional[Decimal] = None
    position: Optional[int] = Field(default=None, ge=1)


class ChequeRequest(RequestSchema):
    user_id: int
    cheque_number: str = Field(min_length=1, max_length=40)
    amount: Decimal = Field(gt=0)
    bank_name: Optional[str] = None


class NotificationReadRequest(RequestSchema):
    ids: List[int] = Field(default_factory=list)
