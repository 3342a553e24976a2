import logging
from extensions import db
from models import Notification


logger = logging.getLogger(__name__)


def notify(user_id, type_, title, message=None, related_id=None):
    """Queue an in-app notification in the current transaction."""
    if user_id is None:
        return None
    note = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        related_id=str(related_id) if related_id is not None else None,
    )
    db.session.add(note)
    logger.debug(f"Notification '{type_}' queued for user {user_id}")
    return note


def unread_count(user_id):
    return Notification.query.filter_by(user_id=user_id, is_read=False).count()


def mark_read(user_id, notification_ids=None):
    q = Notification.query.filter_by(user_id=user_id, is_read=False)
    if notification_ids:
        q = q.filter(Notification.id.in_(notification_ids))
    return q.update({Notification.is_read: True}, synchronize_session=False)
