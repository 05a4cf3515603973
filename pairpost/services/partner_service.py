import logging

from pairpost.db import db
from pairpost.errors import NotFoundError, ValidationError
from pairpost.repositories import partner_request_repository, user_repository


logger = logging.getLogger(__name__)


def _get_user(username):
    user = user_repository.get_by_username(username)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_partner(username):
    return _get_user(username).partner


def send_request(sender_username, receiver_username) -> bool:
    sender = _get_user(sender_username)
    receiver = _get_user(receiver_username)

    if sender.id == receiver.id:
        raise ValidationError("You cannot partner with yourself")
    if sender.partner_id is not None:
        raise ValidationError("You already have a partner")
    if receiver.partner_id is not None:
        raise ValidationError("User already has a partner")

    return partner_request_repository.create_request(sender.id, receiver.id)


def list_incoming(username):
    user = _get_user(username)
    return partner_request_repository.get_incoming(user.id)


def _get_addressed_request(user, request_id):
    partner_request = partner_request_repository.get_request(request_id)
    if partner_request is None or partner_request.receiver_id != user.id:
        raise NotFoundError("Partner request not found")
    return partner_request


def accept_request(username, request_id):
    """Pair the receiver with the sender and drop every pending request of either."""
    user = _get_user(username)
    partner_request = _get_addressed_request(user, request_id)
    sender = partner_request.sender

    if user.partner_id is not None or sender.partner_id is not None:
        raise ValidationError("User already has a partner")

    user_repository.link_partners(user, sender)
    partner_request_repository.delete_requests_involving(user.id, sender.id)
    db.session.commit()

    logger.info("Paired %s with %s", user.username, sender.username)
    return sender


def decline_request(username, request_id):
    user = _get_user(username)
    partner_request = _get_addressed_request(user, request_id)
    partner_request_repository.delete_request(partner_request)


def unpair(username) -> bool:
    user = _get_user(username)
    if user.partner is None:
        return False

    partner = user_repository.unlink_partners(user)
    db.session.commit()
    logger.info("Unpaired %s from %s", username, partner.username if partner else None)
    return True
