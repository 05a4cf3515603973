from sqlalchemy import or_

from pairpost.db import db
from pairpost.models.partner_request_model import PartnerRequest


def get_request(request_id: int):
    return db.session.get(PartnerRequest, request_id)


def get_pending(sender_id: int, receiver_id: int):
    return PartnerRequest.query.filter_by(
        sender_id=sender_id,
        receiver_id=receiver_id,
    ).first()


def create_request(sender_id: int, receiver_id: int) -> bool:
    if get_pending(sender_id, receiver_id) is not None:
        return False

    db.session.add(
        PartnerRequest(
            sender_id=sender_id,
            receiver_id=receiver_id,
        )
    )
    db.session.commit()
    return True


def get_incoming(receiver_id: int):
    return (
        PartnerRequest.query
        .filter_by(receiver_id=receiver_id)
        .order_by(PartnerRequest.created_at.asc(), PartnerRequest.id.asc())
        .all()
    )


def delete_request(partner_request):
    db.session.delete(partner_request)
    db.session.commit()


def delete_requests_involving(*user_ids: int):
    # Flushed with the caller's commit.
    PartnerRequest.query.filter(
        or_(
            PartnerRequest.sender_id.in_(user_ids),
            PartnerRequest.receiver_id.in_(user_ids),
        )
    ).delete(synchronize_session=False)
