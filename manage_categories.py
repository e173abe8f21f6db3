"""
🗂️ CATEGORY MANAGEMENT HELPER
Quick script to seed and manage blog categories in the database.

Usage:
    python manage_categories.py --seed
    python manage_categories.py --list
    python manage_categories.py --create "Health & Wellness" [--description "Posts about ..."]
    python manage_categories.py --delete <id>
"""

import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from postboard.database import SessionLocal, Base, engine
from postboard.errors import AppError
from postboard.models.category import Category
from postboard.services import categories as category_service

DEFAULT_CATEGORIES = [
    ("Technology", "Posts about technology, programming, and software development"),
    ("Lifestyle", "Posts about lifestyle, travel, and personal experiences"),
    ("Business", "Posts about business, entrepreneurship, and marketing"),
    ("Health", "Posts about health, fitness, and wellness"),
    ("Education", "Posts about education, learning, and tutorials"),
]


def seed_categories(db=None):
    """Create the default categories, but only into an empty table"""
    own_session = db is None
    db = db or SessionLocal()

    try:
        if db.query(Category).count() > 0:
            print("Categories already exist. Skipping seed.")
            return 0

        for name, description in DEFAULT_CATEGORIES:
            category = category_service.create_category(db, name, description)
            print(f"✅ Created category: {category.name} ({category.slug})")

        print("All categories seeded successfully!")
        return len(DEFAULT_CATEGORIES)
    finally:
        if own_session:
            db.close()


def list_categories(db=None):
    """List all categories"""
    own_session = db is None
    db = db or SessionLocal()

    try:
        categories = category_service.list_categories(db)

        if not categories:
            print("No categories found.")
            return []

        print("\n📋 CATEGORIES:\n")
        print(f"{'ID':<6} {'Name':<25} {'Slug':<25} {'Posts':<6}")
        print("-" * 64)
        for c in categories:
            print(f"{c.id:<6} {c.name:<25} {c.slug:<25} {len(c.posts):<6}")
        print()
        return categories
    finally:
        if own_session:
            db.close()


def create_category(name, description=None, db=None):
    """Create a single category"""
    own_session = db is None
    db = db or SessionLocal()

    try:
        category = category_service.create_category(db, name, description)
        print("✅ Category created successfully!")
        print(f"   ID: {category.id}")
        print(f"   Name: {category.name}")
        print(f"   Slug: {category.slug}")
        return True
    except AppError as e:
        print(f"❌ {e.message}")
        for v in e.violations:
            print(f"   {v.field}: {v.message}")
        return False
    finally:
        if own_session:
            db.close()


def delete_category(category_id, db=None):
    """Delete a category (its posts are left in place)"""
    own_session = db is None
    db = db or SessionLocal()

    try:
        category_service.delete_category(db, category_id)
        print(f"🗑️ Category {category_id} deleted")
        return True
    except AppError as e:
        print(f"❌ {e.message}")
        return False
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    Base.metadata.create_all(bind=engine)
    command = sys.argv[1]

    if command == "--seed":
        seed_categories()

    elif command == "--list":
        list_categories()

    elif command == "--create":
        if len(sys.argv) < 3:
            print('Usage: python manage_categories.py --create "<name>" [--description TEXT]')
            sys.exit(1)

        name = sys.argv[2]
        description = None
        if "--description" in sys.argv:
            i = sys.argv.index("--description")
            if i + 1 < len(sys.argv):
                description = sys.argv[i + 1]

        ok = create_category(name, description)
        sys.exit(0 if ok else 1)

    elif command == "--delete":
        if len(sys.argv) < 3 or not sys.argv[2].isdigit():
            print("Usage: python manage_categories.py --delete <id>")
            sys.exit(1)
        ok = delete_category(int(sys.argv[2]))
        sys.exit(0 if ok else 1)

    else:
        print(f"Unknown command: {command}")
        print(__doc__)
        sys.exit(1)
