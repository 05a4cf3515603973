from pairpost.models.post_model import Post
from pairpost.db import db


def create_post(user_id, title, caption=None, image=None):
    post = Post(
        user_id=user_id,
        title=title,
        caption=caption,
    )
    if image:
        post.image = image

    db.session.add(post)
    db.session.commit()
    return post


def get_posts_by_user_id(user_id: int):
    return (
        Post.query
        .filter(Post.user_id == user_id)
        .order_by(Post.id.asc())
        .all()
    )
