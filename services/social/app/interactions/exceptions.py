# Domain exceptions raised by the interactions service layer.
# The controller layer catches these and converts them to HTTP errors.


class AlreadyLikedError(Exception):
    pass


class PostNotFoundError(Exception):
    def __init__(self, post_id) -> None:
        self.post_id = post_id
        super().__init__(f"Post {post_id} not found")


class CommentNotFoundError(Exception):
    def __init__(self, comment_id) -> None:
        self.comment_id = comment_id
        super().__init__(f"Comment {comment_id} not found")


class PostAccessDeniedError(Exception):
    """Raised when someone other than the author edits or deletes a post."""
    pass


class ParentCommentMismatchError(Exception):
    """Raised when a reply's parent comment belongs to a different post."""
    pass
