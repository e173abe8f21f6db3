"""
Post service: listing, search, visibility and ownership rules.

Every function takes the request's Session plus the caller's Identity (or
None for anonymous callers) explicitly.

Visibility: a draft (is_published=False) is only ever visible to its author.
Ownership: only the author may update, delete or publish a post, and the
author itself can never be changed.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from postboard.errors import (
    AuthorizationError,
    FieldViolation,
    NotFoundError,
    ValidationError,
    ViolationCollector,
)
from postboard.models.category import Category
from postboard.models.comment import Comment
from postboard.models.post import Post
from postboard.services import validation
from postboard.services.security import Identity
from postboard.services.slugs import slugify

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
# (page - 1) * limit must stay inside a 64-bit OFFSET
MAX_PAGE_PARAM = 1_000_000_000

# Fields a caller may set; anything else (author, author_id, slug, ...) is dropped
EDITABLE_FIELDS = ("title", "content", "excerpt", "tags", "category", "is_published")


@dataclass
class Page:
    items: List[Post]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def parse_positive_int(value, default: int, maximum: int = MAX_PAGE_PARAM) -> int:
    """page/limit parsing: absent, non-numeric, < 1 or > maximum falls back to the default."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if 1 <= number <= maximum else default


def serialize_comment(comment: Comment) -> dict:
    user = comment.user
    return {
        "id": comment.id,
        "postId": comment.post_id,
        "content": comment.content,
        "user": {"id": user.id, "name": user.name, "email": user.email} if user else None,
        "createdAt": comment.created_at.isoformat() if comment.created_at else None,
    }


def serialize_post(post: Post) -> dict:
    """Convert Post ORM object to dict for JSON serialization"""
    author = post.author
    category = post.category
    return {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "content": post.content,
        "excerpt": post.excerpt,
        "tags": list(post.tags or []),
        "isPublished": post.is_published,
        "author": {"id": author.id, "name": author.name, "email": author.email} if author else None,
        "category": {"id": category.id, "name": category.name, "slug": category.slug} if category else None,
        "comments": [serialize_comment(c) for c in post.comments],
        "createdAt": post.created_at.isoformat() if post.created_at else None,
        "updatedAt": post.updated_at.isoformat() if post.updated_at else None,
    }


def _visible_to(query, caller: Optional[Identity]):
    if caller is None:
        return query.filter(Post.is_published == True)
    return query.filter(or_(Post.is_published == True, Post.author_id == caller.id))


def _resolve_category_filter(db: Session, category) -> Optional[int]:
    """Category filter may be an id or a slug. Unknown slug -> -1 (matches nothing)."""
    if category is None or str(category).strip() == "":
        return None
    category_id = validation.parse_id(category)
    if category_id is not None:
        return category_id
    found = db.query(Category).filter(Category.slug == str(category).strip().lower()).first()
    return found.id if found else -1


def _with_relations(query):
    # Everything serialize_post touches, loaded in a fixed number of queries
    return query.options(
        selectinload(Post.author),
        selectinload(Post.category),
        selectinload(Post.comments).selectinload(Comment.user),
    )


def _paginate(query, page, limit) -> Page:
    page = parse_positive_int(page, DEFAULT_PAGE)
    limit = parse_positive_int(limit, DEFAULT_LIMIT)

    total = query.count()
    items = (
        _with_relations(query)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return Page(items=items, total=total, page=page, limit=limit)


def list_posts(db: Session, page=None, limit=None, category=None, caller: Optional[Identity] = None) -> Page:
    """Anonymous callers see published posts; authenticated callers also see their own drafts."""
    query = _visible_to(db.query(Post), caller)

    category_id = _resolve_category_filter(db, category)
    if category_id is not None:
        query = query.filter(Post.category_id == category_id)

    return _paginate(query, page, limit)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_posts(db: Session, q, page=None, limit=None, caller: Optional[Identity] = None) -> Page:
    """
    Case-insensitive substring search over title and content.
    Tags are deliberately not searched.
    """
    if not isinstance(q, str) or not q.strip():
        raise ValidationError("Search query is required", [FieldViolation("q", "Search query is required")])

    pattern = f"%{_escape_like(q.strip())}%"
    query = _visible_to(db.query(Post), caller).filter(
        or_(
            Post.title.ilike(pattern, escape="\\"),
            Post.content.ilike(pattern, escape="\\"),
        )
    )
    return _paginate(query, page, limit)


def list_my_posts(db: Session, caller: Identity) -> List[Post]:
    return (
        _with_relations(db.query(Post))
        .filter(Post.author_id == caller.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .all()
    )


def _find_post(db: Session, id_or_slug) -> Optional[Post]:
    key = str(id_or_slug).strip()
    post_id = validation.parse_id(key)
    if post_id is not None:
        return db.get(Post, post_id)
    # Slugs are not unique; the oldest post wins
    return db.query(Post).filter(Post.slug == key.lower()).order_by(Post.id.asc()).first()


def _require_post(db: Session, id_or_slug) -> Post:
    post = _find_post(db, id_or_slug)
    if not post:
        raise NotFoundError("Post not found")
    return post


def _check_visible(post: Post, caller: Optional[Identity]):
    # Exists-but-invisible is 403, absent is 404
    if post.is_published:
        return
    if caller is None:
        raise AuthorizationError("This post is not published. Please sign in if you are the author.")
    if post.author_id != caller.id:
        raise AuthorizationError("This post is not published and you are not the author.")


def _check_owner(post: Post, caller: Identity, action: str):
    if post.author_id != caller.id:
        logger.info("User %s tried to %s post %s owned by %s", caller.id, action, post.id, post.author_id)
        raise AuthorizationError(f"You can only {action} your own posts")


def get_post(db: Session, id_or_slug, caller: Optional[Identity] = None) -> Post:
    post = _require_post(db, id_or_slug)
    _check_visible(post, caller)
    return post


def _validate_post_fields(db: Session, fields: dict, partial: bool) -> ViolationCollector:
    errors = ViolationCollector()

    if "title" in fields or not partial:
        if not validation.validate_post_title(fields.get("title")):
            errors.add("title", f"Title is required and cannot exceed {validation.TITLE_MAX} characters")
        elif not slugify(fields["title"]):
            errors.add("title", "Title must contain at least one letter or digit")

    if "content" in fields or not partial:
        if not validation.validate_post_content(fields.get("content")):
            errors.add("content", f"Content must be at least {validation.CONTENT_MIN} characters")

    if "category" in fields or not partial:
        category = fields.get("category")
        category_id = validation.parse_id(category)
        if category is None or str(category).strip() == "":
            errors.add("category", "Category is required")
        elif category_id is None or db.get(Category, category_id) is None:
            errors.add("category", "Category not found")

    excerpt = fields.get("excerpt")
    if excerpt is not None and not validation.validate_length(excerpt, 0, validation.EXCERPT_MAX):
        errors.add("excerpt", f"Excerpt cannot exceed {validation.EXCERPT_MAX} characters")

    tags = fields.get("tags")
    if tags is not None and not validation.validate_tags(tags):
        errors.add("tags", "Tags must be a list of strings")

    if fields.get("is_published") is not None and not isinstance(fields["is_published"], bool):
        errors.add("isPublished", "isPublished must be true or false")

    return errors


def _editable(fields: dict) -> dict:
    return {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}


def create_post(db: Session, fields: dict, author: Identity) -> Post:
    """
    Create a post owned by `author`.
    🔒 Any author supplied in `fields` is ignored: the owner is always the caller.
    """
    fields = _editable(fields)
    errors = _validate_post_fields(db, fields, partial=False)
    errors.raise_if_any()

    title = fields["title"].strip()
    post = Post(
        title=title,
        slug=slugify(title),
        content=fields["content"],
        excerpt=fields.get("excerpt"),
        tags=validation.clean_tags(fields.get("tags") or []),
        category_id=validation.parse_id(fields["category"]),
        author_id=author.id,
        is_published=bool(fields.get("is_published") or False),
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info("User %s created post %s (published=%s)", author.id, post.id, post.is_published)
    return post


def update_post(db: Session, post_id, fields: dict, caller: Identity) -> Post:
    """404 if absent, 403 if not the author, then 400 listing every bad field."""
    post = _require_post(db, post_id)
    _check_owner(post, caller, "update")

    fields = _editable(fields)
    errors = _validate_post_fields(db, fields, partial=True)
    errors.raise_if_any()

    if "title" in fields:
        post.title = fields["title"].strip()
        post.slug = slugify(post.title)
    if "content" in fields:
        post.content = fields["content"]
    if "excerpt" in fields:
        post.excerpt = fields["excerpt"]
    if "tags" in fields:
        post.tags = validation.clean_tags(fields["tags"] or [])
    if "category" in fields:
        post.category_id = validation.parse_id(fields["category"])
    if fields.get("is_published") is not None:
        post.is_published = fields["is_published"]

    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post_id, caller: Identity):
    """Hard delete (comments go with the post). The category is left as is."""
    post = _require_post(db, post_id)
    _check_owner(post, caller, "delete")

    db.delete(post)
    db.commit()
    logger.info("User %s deleted post %s", caller.id, post_id)


def set_published(db: Session, post_id, is_published, caller: Identity) -> Post:
    """Move a post to the requested state. Asking for the current state is a no-op."""
    if not isinstance(is_published, bool):
        raise ValidationError("Validation failed", [FieldViolation("isPublished", "isPublished must be true or false")])

    post = _require_post(db, post_id)
    _check_owner(post, caller, "publish/unpublish")

    if post.is_published != is_published:
        post.is_published = is_published
        db.commit()
        db.refresh(post)
    return post


def list_comments(db: Session, post_id, caller: Optional[Identity] = None) -> List[Comment]:
    post = get_post(db, post_id, caller)
    return list(post.comments)


def add_comment(db: Session, post_id, content, author: Identity) -> Comment:
    post = get_post(db, post_id, author)

    errors = ViolationCollector()
    if not validation.validate_length(content, 1, validation.COMMENT_MAX):
        errors.add("content", f"Comment must be 1-{validation.COMMENT_MAX} characters")
    errors.raise_if_any()

    comment = Comment(post_id=post.id, user_id=author.id, content=content.strip())
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment
