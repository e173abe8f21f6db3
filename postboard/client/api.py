"""
HTTP client for the Postboard API.

    api = ApiClient("http://localhost:8000/api")
    api.auth.login("jane@x.com", "secret1")   # token kept for later calls
    api.posts.create({"title": "...", "content": "...", "category": 1})

Any non-2xx response raises ApiError carrying the server's message, status
and body. A 401 also forgets the stored token.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, data=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"Request failed with status {response.status_code}"

    if isinstance(data, dict):
        violations = data.get("errors") or []
        if violations and isinstance(violations, list):
            details = ", ".join(
                f"{v.get('field')}: {v.get('message')}" if isinstance(v, dict) else str(v) for v in violations
            )
            return f"{data.get('message', 'Validation failed')} ({details})"
        if data.get("message"):
            return data["message"]
        if data.get("error"):
            return data["error"]
    return f"Request failed with status {response.status_code}"


class _Group:
    def __init__(self, client: "ApiClient"):
        self.client = client


class PostsApi(_Group):
    def list(self, page: int = 1, limit: int = 10, category=None) -> dict:
        params = {"page": page, "limit": limit}
        if category is not None:
            params["category"] = category
        return self.client.request("GET", "/posts", params=params)

    def search(self, query: str, page: int = 1, limit: int = 10) -> dict:
        return self.client.request("GET", "/posts/search", params={"q": query, "page": page, "limit": limit})

    def mine(self) -> list:
        return self.client.request("GET", "/posts/my-posts")

    def get(self, id_or_slug) -> dict:
        return self.client.request("GET", f"/posts/{id_or_slug}")

    def create(self, fields: dict) -> dict:
        return self.client.request("POST", "/posts", json=fields)

    def update(self, post_id, fields: dict) -> dict:
        return self.client.request("PUT", f"/posts/{post_id}", json=fields)

    def delete(self, post_id) -> dict:
        return self.client.request("DELETE", f"/posts/{post_id}")

    def publish(self, post_id, is_published: bool) -> dict:
        return self.client.request("PATCH", f"/posts/{post_id}/publish", json={"isPublished": is_published})

    def comments(self, post_id) -> list:
        return self.client.request("GET", f"/posts/{post_id}/comments")

    def add_comment(self, post_id, content: str) -> dict:
        return self.client.request("POST", f"/posts/{post_id}/comments", json={"content": content})


class CategoriesApi(_Group):
    def list(self) -> list:
        return self.client.request("GET", "/categories")

    def get(self, category_id) -> dict:
        return self.client.request("GET", f"/categories/{category_id}")

    def create(self, fields: dict) -> dict:
        return self.client.request("POST", "/categories", json=fields)

    def update(self, category_id, fields: dict) -> dict:
        return self.client.request("PUT", f"/categories/{category_id}", json=fields)

    def delete(self, category_id) -> dict:
        return self.client.request("DELETE", f"/categories/{category_id}")


class AuthApi(_Group):
    def register(self, name: str, email: str, password: str) -> dict:
        return self.client.request("POST", "/auth/register", json={"name": name, "email": email, "password": password})

    def login(self, email: str, password: str) -> dict:
        data = self.client.request("POST", "/auth/login", json={"email": email, "password": password})
        if data.get("token"):
            self.client.token = data["token"]
            self.client.user = data.get("data")
        return data

    def logout(self):
        # Client-side only: the server keeps no session to invalidate
        self.client.token = None
        self.client.user = None

    def me(self) -> dict:
        return self.client.request("GET", "/auth/me")


class ApiClient:
    def __init__(self, base_url: str = "http://localhost:8000/api", http: Optional[httpx.Client] = None, token: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or httpx.Client()
        self.token = token
        self.user = None

        self.posts = PostsApi(self)
        self.categories = CategoriesApi(self)
        self.auth = AuthApi(self)

    def request(self, method: str, path: str, **kwargs):
        headers = {}
        if "json" in kwargs:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.http.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(str(e) or "Network error") from e

        if response.status_code == 401:
            self.token = None
            self.user = None

        if response.is_error:
            data = None
            try:
                data = response.json()
            except ValueError:
                pass
            raise ApiError(_error_message(response), response.status_code, data)

        return response.json()

    def close(self):
        self.http.close()
