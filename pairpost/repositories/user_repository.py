from pairpost.models.user_model import User
from pairpost.db import db


def get_by_username(username: str):
    return User.query.filter_by(username=username).first()


def create_user(username, password_hash):
    user = User(
        username=username,
        password_hash=password_hash,
    )
    db.session.add(user)
    db.session.commit()
    return user


def link_partners(user, partner):
    user.partner = partner
    partner.partner = user


def unlink_partners(user):
    partner = user.partner
    user.partner = None
    if partner is not None and partner.partner_id == user.id:
        partner.partner = None
    return partner
