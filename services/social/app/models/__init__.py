from app.models.follow import Follow
from app.models.notification import Notification
from app.models.post import Comment, Hashtag, Like, Post, post_hashtags
from app.models.user import User

__all__ = [
    "User",
    "Follow",
    "Post",
    "Comment",
    "Like",
    "Hashtag",
    "post_hashtags",
    "Notification",
]
