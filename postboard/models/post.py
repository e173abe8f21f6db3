from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from postboard.database import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False, index=True)
    slug = Column(String(255), nullable=False, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(200))
    tags = Column(JSON, default=list, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # No FK constraint: deleting a category leaves this id dangling
    category_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    author = relationship("User", back_populates="posts")
    category = relationship(
        "Category",
        primaryjoin="foreign(Post.category_id) == Category.id",
        back_populates="posts",
    )
    comments = relationship(
        "Comment",
        back_populates="post",
        order_by="Comment.id",
        cascade="all, delete-orphan",
    )
