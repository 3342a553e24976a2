import logging
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError
from extensions import db
from models import News, Achiever, Cheque
from schemas import NewsRequest, AchieverRequest, ChequeRequest
from mlm.accounts import get_user_or_404
from mlm.notifications import notify
from mlm.exceptions import ConflictError
from blueprints.api_helpers import admin_required, parse_body


logger = logging.getLogger(__name__)

bp = Blueprint("content", __name__, url_prefix="/api")


@bp.route("/news", methods=["GET"])
def list_news():
    items = News.query.filter_by(is_active=True).order_by(News.created_at.desc()).limit(50).all()
    return jsonify([n.to_dict() for n in items]), 200


@bp.route("/admin/news", methods=["POST"])
@admin_required
def create_news():
    data = parse_body(NewsRequest)
    news = News(created_by=current_user.id, **data.model_dump())
    db.session.add(news)
    db.session.commit()
    return jsonify(news.to_dict()), 201


@bp.route("/achievers", defaults={"achievement_type": None}, methods=["GET"])
@bp.route("/achievers/<achievement_type>", methods=["GET"])
def list_achievers(achievement_type):
    q = Achiever.query
    if achievement_type:
        q = q.filter_by(achievement_type=achievement_type)
    period = request.args.get("period")
    if period:
        q = q.filter_by(period=period)
    rows = q.order_by(Achiever.achieved_at.desc(), Achiever.position.asc()).limit(100).all()
    return jsonify([a.to_dict() for a in rows]), 200


@bp.route("/admin/achievers", methods=["POST"])
@admin_required
def create_achiever():
    data = parse_body(AchieverRequest)
    get_user_or_404(data.user_id)
    achiever = Achiever(**data.model_dump())
    db.session.add(achiever)
    db.session.commit()
    return jsonify(achiever.to_dict()), 201


@bp.route("/cheques", methods=["GET"])
@login_required
def my_cheques():
    rows = Cheque.query.filter_by(user_id=current_user.id).order_by(Cheque.issued_date.desc()).all()
    return jsonify([c.to_dict() for c in rows]), 200


@bp.route("/admin/cheques", methods=["POST"])
@admin_required
def issue_cheque():
    data = parse_body(ChequeRequest)
    get_user_or_404(data.user_id)
    cheque = Cheque(**data.model_dump())
    db.session.add(cheque)
    notify(data.user_id, "cheque_issued", "A cheque has been issued to you",
           f"Cheque {data.cheque_number} for {data.amount}", related_id=data.cheque_number)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Cheque number already exists")
    return jsonify(cheque.to_dict()), 201
