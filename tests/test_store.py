"""
Tests for the optimistic ContentStore and the ApiClient it talks through
"""

import json

import httpx
import pytest

from postboard.client.api import ApiClient, ApiError
from postboard.client.store import ContentStore, StoreState


class StubPosts:
    def __init__(self):
        self.fail_with = None
        self.calls = []

    def _maybe_fail(self, name, *args):
        self.calls.append((name, *args))
        if self.fail_with:
            raise self.fail_with

    def list(self, page=1, limit=10, category=None):
        self._maybe_fail("list", page, limit, category)
        return {"posts": [{"id": 1, "title": "Listed"}], "pagination": {"totalPages": 3, "totalPosts": 25}}

    def search(self, query, page=1, limit=10):
        self._maybe_fail("search", query, page, limit)
        return {"posts": [{"id": 9, "title": f"Found {query}"}], "pagination": {"totalPages": 1, "totalPosts": 1}}

    def create(self, fields):
        self._maybe_fail("create", fields)
        return {"data": {**fields, "id": 42}}

    def update(self, post_id, fields):
        self._maybe_fail("update", post_id, fields)
        return {"data": {"id": post_id, **fields, "slug": "server-slug"}}

    def delete(self, post_id):
        self._maybe_fail("delete", post_id)
        return {"message": "ok"}


class StubCategories:
    def __init__(self):
        self.fail_with = None

    def list(self):
        return [{"id": 1, "name": "Technology"}]

    def create(self, fields):
        if self.fail_with:
            raise self.fail_with
        return {"data": {**fields, "id": 5, "slug": "food"}}

    def update(self, category_id, fields):
        if self.fail_with:
            raise self.fail_with
        return {"data": {"id": category_id, **fields}}


class StubApi:
    def __init__(self):
        self.posts = StubPosts()
        self.categories = StubCategories()


@pytest.fixture
def api():
    return StubApi()


@pytest.fixture
def store(api):
    posts = ({"id": "A", "title": "Post A"}, {"id": "B", "title": "Post B"})
    return ContentStore(api, StoreState(posts=posts, categories=({"id": 1, "name": "Technology"},)))


class TestOptimisticPosts:
    """Test post mutations roll back exactly on failure"""

    def test_delete_rollback(self, store, api):
        """Should restore [A, B] in order and surface the error"""
        api.posts.fail_with = ApiError("Network error")

        result = store.delete_post("A")

        assert result.success is False
        assert result.error == "Network error"
        assert [p["id"] for p in store.state.posts] == ["A", "B"]
        assert store.state.error == "Network error"

    def test_delete_success(self, store):
        result = store.delete_post("A")

        assert result.success is True
        assert [p["id"] for p in store.state.posts] == ["B"]

    def test_create_replaces_temp_item(self, store):
        result = store.create_post({"title": "New"})

        assert result.success is True
        ids = [p["id"] for p in store.state.posts]
        assert ids == ["A", "B", 42]
        assert not any(str(i).startswith("temp-") for i in ids)
        assert store.state.current_page == 1

    def test_create_failure_removes_temp_item(self, store, api):
        api.posts.fail_with = ApiError("Validation failed (title: Title is required)", 400)

        result = store.create_post({"title": ""})

        assert result.success is False
        assert [p["id"] for p in store.state.posts] == ["A", "B"]
        assert "title" in result.error

    def test_optimistic_item_visible_during_call(self, store, api):
        """Should show the temp item while the server call is in flight"""
        seen = []

        def create(fields):
            seen.extend(p for p in store.state.posts if p.get("_optimistic"))
            return {"data": {**fields, "id": 42}}

        api.posts.create = create

        store.create_post({"title": "New"})

        assert len(seen) == 1
        assert seen[0]["id"].startswith("temp-")
        assert seen[0]["author"] == "You"

    def test_edit_success_uses_server_version(self, store):
        result = store.edit_post("A", {"title": "Edited"})

        assert result.success is True
        assert store.state.posts[0] == {"id": "A", "title": "Edited", "slug": "server-slug"}

    def test_edit_failure_restores_snapshot(self, store, api):
        api.posts.fail_with = ApiError("You can only update your own posts", 403)
        before = store.state.posts

        result = store.edit_post("A", {"title": "Edited"})

        assert result.success is False
        assert store.state.posts == before


class TestOptimisticCategories:
    """Test category mutations"""

    def test_create_category(self, store):
        result = store.create_category({"name": "Food"})

        assert result.success is True
        assert [c["id"] for c in store.state.categories] == [1, 5]

    def test_create_category_failure(self, store, api):
        api.categories.fail_with = ApiError("Category 'Technology' already exists", 409)

        result = store.create_category({"name": "Technology"})

        assert result.success is False
        assert [c["id"] for c in store.state.categories] == [1]

    def test_edit_category_failure(self, store, api):
        api.categories.fail_with = ApiError("Category not found", 404)

        store.edit_category(1, {"name": "Tech"})

        assert store.state.categories == ({"id": 1, "name": "Technology"},)


class TestBrowsing:
    """Test pagination, search and the category filter"""

    def test_refresh_loads_page(self, store):
        state = store.refresh()

        assert state.posts == ({"id": 1, "title": "Listed"},)
        assert state.total_pages == 3
        assert state.total_posts == 25
        assert state.loading is False

    def test_refresh_error(self, store, api):
        api.posts.fail_with = ApiError("Server down", 500)

        state = store.refresh()

        assert state.error == "Server down"
        assert state.loading is False

    def test_page_navigation(self, store, api):
        store.refresh()

        store.go_to_next_page()
        assert store.state.current_page == 2

        store.go_to_page(99)
        assert store.state.current_page == 2

        store.go_to_prev_page()
        store.go_to_prev_page()
        assert store.state.current_page == 1
        assert api.posts.calls[-1] == ("list", 1, 10, None)

    def test_search_clears_category(self, store, api):
        store.select_category(1)
        assert store.state.selected_category == 1

        state = store.search_posts("  fastapi ")

        assert state.is_search_mode is True
        assert state.search_query == "fastapi"
        assert state.selected_category is None
        assert state.posts == ({"id": 9, "title": "Found fastapi"},)

    def test_category_clears_search(self, store):
        store.search_posts("fastapi")

        state = store.select_category(1)

        assert state.is_search_mode is False
        assert state.search_query == ""
        assert state.selected_category == 1

    def test_blank_search_clears(self, store):
        store.search_posts("fastapi")

        state = store.search_posts("   ")

        assert state.is_search_mode is False
        assert state.posts == ({"id": 1, "title": "Listed"},)

    def test_paging_in_search_mode_searches(self, store, api):
        store.search_posts("fastapi")
        store._set(total_pages=2)

        store.go_to_next_page()

        assert api.posts.calls[-1] == ("search", "fastapi", 2, 10)


class TestAgainstServer:
    """Run the store through ApiClient against the real app"""

    @pytest.fixture
    def api_client(self, client):
        return ApiClient("http://testserver/api", http=client)

    def test_login_and_create(self, api_client, jane, category):
        api_client.auth.login("jane@x.com", "secret1")
        store = ContentStore(api_client)

        result = store.create_post({"title": "From the store", "content": "Created through the client", "category": category["id"]})

        assert result.success is True
        created = store.state.posts[-1]
        assert isinstance(created["id"], int)
        assert created["slug"] == "from-the-store"
        assert api_client.posts.mine()[0]["id"] == created["id"]

    def test_failed_delete_rolls_back(self, api_client, jane, bob, make_post):
        post = make_post(jane, published=True)
        api_client.auth.login("bob@x.com", "secret2")
        store = ContentStore(api_client)
        store.refresh()
        assert [p["id"] for p in store.state.posts] == [post["id"]]

        result = store.delete_post(post["id"])

        assert result.success is False
        assert result.error == "You can only delete your own posts"
        assert [p["id"] for p in store.state.posts] == [post["id"]]

    def test_unauthorized_clears_token(self, api_client):
        api_client.token = "garbage"

        with pytest.raises(ApiError) as exc:
            api_client.auth.me()

        assert exc.value.status == 401
        assert api_client.token is None

    def test_validation_message_lists_fields(self, api_client, jane):
        api_client.auth.login("jane@x.com", "secret1")

        with pytest.raises(ApiError) as exc:
            api_client.posts.create({"title": "", "content": "short"})

        assert exc.value.status == 400
        assert "title:" in exc.value.message
        assert "content:" in exc.value.message


class TestRequestHeaders:
    """Test the headers ApiClient puts on the wire"""

    @pytest.fixture
    def sent(self):
        return []

    @pytest.fixture
    def api_client(self, sent):
        def handler(request):
            sent.append(request)
            return httpx.Response(200, json={"data": {}})

        http = httpx.Client(transport=httpx.MockTransport(handler))
        return ApiClient("http://api.test/api", http=http, token="abc")

    def test_no_content_type_without_body(self, api_client, sent):
        """Should not claim a JSON body on GET/DELETE"""
        api_client.posts.get(1)
        api_client.posts.delete(1)

        assert [r.method for r in sent] == ["GET", "DELETE"]
        assert all("content-type" not in r.headers for r in sent)
        assert all(r.headers["authorization"] == "Bearer abc" for r in sent)

    def test_content_type_with_json_body(self, api_client, sent):
        api_client.posts.create({"title": "T"})

        assert sent[0].headers["content-type"] == "application/json"
        assert json.loads(sent[0].content) == {"title": "T"}
