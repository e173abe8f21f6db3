"""
Test suite for the Postboard API and client store.

Run tests:
    pytest                      # Everything
    pytest tests/test_posts.py  # One area
    pytest -k "draft"           # Tests matching name

Every test gets a fresh in-memory SQLite database (see conftest.py).
"""
