from typing import List, Optional, Union

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from postboard.database import get_db
from postboard.dependencies import get_current_identity, get_optional_identity
from postboard.services import posts as post_service
from postboard.services.security import Identity

router = APIRouter(prefix="/api/posts", tags=["posts"])


class PostCreate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    tags: Optional[List[str]] = None
    category: Optional[Union[int, str]] = None
    is_published: Optional[bool] = Field(None, alias="isPublished")

    class Config:
        populate_by_name = True


class PostUpdate(PostCreate):
    pass


class PublishRequest(BaseModel):
    is_published: bool = Field(..., alias="isPublished")

    class Config:
        populate_by_name = True


class CommentCreate(BaseModel):
    content: Optional[str] = None


def _pagination(page: post_service.Page) -> dict:
    return {
        "currentPage": page.page,
        "totalPages": page.total_pages,
        "totalPosts": page.total,
        "hasNextPage": page.has_next,
        "hasPrevPage": page.has_prev,
    }


@router.get("")
def list_posts(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    category: Optional[str] = None,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db),
):
    """Published posts, plus the caller's own drafts when signed in."""
    result = post_service.list_posts(db, page, limit, category, identity)
    return {
        "posts": [post_service.serialize_post(p) for p in result.items],
        "pagination": _pagination(result),
    }


@router.get("/search")
def search_posts(
    q: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db),
):
    """Search titles and content (case-insensitive). Tags are not searched."""
    result = post_service.search_posts(db, q, page, limit, identity)
    return {
        "posts": [post_service.serialize_post(p) for p in result.items],
        "pagination": {**_pagination(result), "searchQuery": q.strip()},
    }


@router.get("/my-posts")
def my_posts(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    """Every post by the caller, drafts included."""
    return [post_service.serialize_post(p) for p in post_service.list_my_posts(db, identity)]


@router.get("/{post_id}/comments")
def get_comments(
    post_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db),
):
    comments = post_service.list_comments(db, post_id, identity)
    return [post_service.serialize_comment(c) for c in comments]


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    post_id: str,
    data: CommentCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    comment = post_service.add_comment(db, post_id, data.content, identity)
    return {"message": "Comment added successfully", "comment": post_service.serialize_comment(comment)}


@router.get("/{id_or_slug}")
def get_post(
    id_or_slug: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: Session = Depends(get_db),
):
    """Single post by id or slug. Drafts are 403 for everyone but their author."""
    return post_service.serialize_post(post_service.get_post(db, id_or_slug, identity))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    data: PostCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Create a post. 🔒 The author is always the token's user; an `author`
    field in the body is dropped by the request model.
    """
    post = post_service.create_post(db, data.model_dump(exclude_unset=True), identity)
    return {"message": "Post created successfully", "data": post_service.serialize_post(post)}


@router.put("/{post_id}")
def update_post(
    post_id: str,
    data: PostUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    post = post_service.update_post(db, post_id, data.model_dump(exclude_unset=True), identity)
    return {"message": f"Post {post.id} updated successfully", "data": post_service.serialize_post(post)}


@router.delete("/{post_id}")
def delete_post(
    post_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    post_service.delete_post(db, post_id, identity)
    return {"message": f"Post {post_id} deleted successfully"}


@router.patch("/{post_id}/publish")
def publish_post(
    post_id: str,
    data: PublishRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    post = post_service.set_published(db, post_id, data.is_published, identity)
    action = "published" if post.is_published else "unpublished"
    return {"message": f"Post {action} successfully", "data": post_service.serialize_post(post)}
