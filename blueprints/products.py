import logging
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError
from extensions import db
from models import Product, Purchase
from schemas import ProductRequest, ProductUpdateRequest, PurchaseRequest
from mlm.purchases import create_purchase, complete_purchase, cancel_purchase
from mlm.exceptions import NotFoundError, ValidationError, ConflictError
from blueprints.api_helpers import admin_required, parse_body, pagination


logger = logging.getLogger(__name__)

bp = Blueprint("products", __name__, url_prefix="/api")

PURCHASE_TYPES = ("first_purchase", "second_purchase")


# ==========================================================
#                  CATALOGUE
# ==========================================================
@bp.route("/products", methods=["GET"])
def list_products():
    q = Product.query.filter_by(is_active=True)
    category = request.args.get("category")
    if category:
        q = q.filter_by(category=category)
    return jsonify([p.to_dict() for p in q.order_by(Product.price).all()]), 200


@bp.route("/products/type/<purchase_type>", methods=["GET"])
def products_by_type(purchase_type):
    if purchase_type not in PURCHASE_TYPES:
        raise ValidationError("Purchase type must be first_purchase or second_purchase")
    products = Product.query.filter_by(is_active=True, purchase_type=purchase_type).order_by(Product.price).all()
    return jsonify([p.to_dict() for p in products]), 200


@bp.route("/products/<int:product_id>", methods=["GET"])
def get_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return jsonify(product.to_dict()), 200


@bp.route("/admin/products", methods=["POST"])
@admin_required
def create_product():
    data = parse_body(ProductRequest)
    product = Product(**data.model_dump())
    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A product with this name already exists")
    logger.info(f"Admin {current_user.id} created product {product.id} ({product.name})")
    return jsonify(product.to_dict()), 201


@bp.route("/admin/products/<int:product_id>", methods=["PATCH", "PUT"])
@admin_required
def update_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    data = parse_body(ProductUpdateRequest)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(product, field, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A product with this name already exists")
    return jsonify(product.to_dict()), 200


# ==========================================================
#                  PURCHASES
# ==========================================================
@bp.route("/purchases", methods=["POST"])
@login_required
def purchase():
    data = parse_body(PurchaseRequest)
    purchase = create_purchase(
        current_user,
        data.product_id,
        quantity=data.quantity,
        payment_method=data.payment_method,
        delivery_address=data.delivery_address,
    )
    db.session.commit()
    return jsonify(purchase.to_dict()), 201


@bp.route("/purchases", methods=["GET"])
@login_required
def my_purchases():
    rows = Purchase.query.filter_by(user_id=current_user.id).order_by(Purchase.created_at.desc()).all()
    return jsonify([p.to_dict() for p in rows]), 200


@bp.route("/admin/purchases", methods=["GET"])
@admin_required
def all_purchases():
    limit, offset = pagination()
    q = Purchase.query
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)
    rows = q.order_by(Purchase.created_at.desc()).offset(offset).limit(limit).all()
    return jsonify([p.to_dict() for p in rows]), 200


@bp.route("/admin/purchases/<int:purchase_id>/complete", methods=["POST"])
@admin_required
def complete(purchase_id):
    purchase = complete_purchase(purchase_id)
    db.session.commit()
    logger.info(f"Admin {current_user.id} completed purchase {purchase.id}")
    return jsonify(purchase.to_dict()), 200


@bp.route("/admin/purchases/<int:purchase_id>/cancel", methods=["POST"])
@admin_required
def cancel(purchase_id):
    purchase = cancel_purchase(purchase_id)
    db.session.commit()
    return jsonify(purchase.to_dict()), 200
