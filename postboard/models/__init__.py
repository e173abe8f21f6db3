# Importing every model registers its table on Base.metadata
from postboard.models.user import User
from postboard.models.category import Category
from postboard.models.post import Post
from postboard.models.comment import Comment

__all__ = ["User", "Category", "Post", "Comment"]
