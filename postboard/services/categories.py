import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from postboard.errors import ConflictError, NotFoundError, ViolationCollector
from postboard.models.category import Category
from postboard.services import validation
from postboard.services.slugs import slugify

logger = logging.getLogger(__name__)


def serialize_category(category: Category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "posts": [p.id for p in category.posts],
        "createdAt": category.created_at.isoformat() if category.created_at else None,
        "updatedAt": category.updated_at.isoformat() if category.updated_at else None,
    }


def _validate(errors: ViolationCollector, fields: dict, partial: bool):
    if "name" in fields or not partial:
        name = fields.get("name")
        if not validation.validate_category_name(name):
            errors.add(
                "name",
                f"Category name must be {validation.CATEGORY_NAME_MIN}-{validation.CATEGORY_NAME_MAX} characters",
            )
        elif not slugify(name):
            errors.add("name", "Category name must contain at least one letter or digit")

    description = fields.get("description")
    if description is not None and not validation.validate_length(
        description, 0, validation.CATEGORY_DESCRIPTION_MAX
    ):
        errors.add("description", f"Description cannot exceed {validation.CATEGORY_DESCRIPTION_MAX} characters")


def _commit_unique(db: Session, category: Category):
    """Commit, translating a unique index violation on name/slug into a 409."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Category '{category.name}' already exists (duplicate name or slug)")
    db.refresh(category)


def list_categories(db: Session):
    return db.query(Category).order_by(Category.name.asc()).all()


def get_category(db: Session, category_id: int) -> Category:
    category_id = validation.parse_id(category_id)
    category = db.get(Category, category_id) if category_id is not None else None
    if not category:
        raise NotFoundError("Category not found")
    return category


def create_category(db: Session, name, description=None) -> Category:
    errors = ViolationCollector()
    _validate(errors, {"name": name, "description": description}, partial=False)
    errors.raise_if_any()

    name = name.strip()
    category = Category(
        name=name,
        slug=slugify(name),
        description=description.strip() if description else None,
    )
    db.add(category)
    _commit_unique(db, category)

    logger.info("Created category %s (%s)", category.id, category.slug)
    return category


def update_category(db: Session, category_id: int, fields: dict) -> Category:
    """Partial update; a new name also re-derives the slug."""
    category = get_category(db, category_id)

    errors = ViolationCollector()
    _validate(errors, fields, partial=True)
    errors.raise_if_any()

    if fields.get("name") is not None:
        category.name = fields["name"].strip()
        category.slug = slugify(category.name)
    if "description" in fields:
        description = fields["description"]
        category.description = description.strip() if description else None

    _commit_unique(db, category)
    return category


def delete_category(db: Session, category_id: int):
    """
    Hard delete. Posts filed under the category are NOT touched: they keep
    the stale category_id and serialize with category = null.
    """
    category = get_category(db, category_id)
    db.delete(category)
    db.commit()
    logger.info("Deleted category %s", category_id)
