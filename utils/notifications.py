import logging

from flask import current_app
from flask_mail import Message

from extensions import mail
from models import db
from models.notifications import Notification
from models.users import User

logger = logging.getLogger(__name__)


def email_user(user_id, subject, body):
    """Mail a user through Flask-Mail. Returns False when nothing was sent."""
    user = db.session.get(User, user_id)
    if not user or not user.email:
        return False
    try:
        mail.send(Message(subject=subject, recipients=[user.email], body=body))
    except Exception as e:
        logger.warning("Failed to email user %s: %s", user_id, e)
        return False
    return True


def notify(user_id, title, message, link=None, type="info"):
    """Fire-and-forget notification: never raises, failures are only logged."""
    try:
        notification = Notification(user_id=user_id, title=title, message=message, link=link, type=type)
        db.session.add(notification)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.warning("Could not store notification for user %s", user_id, exc_info=True)
        return False

    if current_app.config.get("NOTIFY_BY_EMAIL"):
        email_user(user_id, title, f"{message}\n\n{link or ''}".strip())
    return True
