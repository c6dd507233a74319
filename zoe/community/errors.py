from zoe.core.errors import DomainError


class PostNotFoundError(DomainError):
    def __init__(self, post_id: str):
        self.post_id = post_id
        super().__init__(f"Post not found: {post_id}")


class CommentNotFoundError(DomainError):
    def __init__(self, comment_id: str):
        self.comment_id = comment_id
        super().__init__(f"Comment not found: {comment_id}")


class NotPostOwnerError(DomainError):
    def __init__(self, post_id: str):
        self.post_id = post_id
        super().__init__(f"Not allowed to modify post {post_id}")


class LikeNotFoundError(DomainError):
    def __init__(self, post_id: str):
        self.post_id = post_id
        super().__init__(f"Like not found for post {post_id}")
