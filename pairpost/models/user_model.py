from datetime import datetime

from pairpost.db import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # One-to-one; both sides of a pair point at each other.
    partner_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )
    partner = db.relationship(
        "User",
        remote_side=[id],
        foreign_keys=[partner_id],
        uselist=False,
        post_update=True,
    )

    posts = db.relationship(
        "Post",
        backref="user",
        lazy="select",
        order_by="Post.id",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
        }
