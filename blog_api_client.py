"""Blog API client.

This module defines a small client wrapper around the REST API served
by ``blog_api``.  It uses the ``requests`` library internally and
exposes one method per post operation:

* :meth:`list_posts` – list posts, optionally filtered by author or tag.
* :meth:`get_post` – fetch a single post by its identifier.
* :meth:`create_post` – create a post.
* :meth:`update_post` – change some fields of a post.
* :meth:`delete_post` – delete a post.

Every method returns a ``(result, error)`` tuple instead of raising.
``error`` is ``None`` on success, otherwise a dictionary with the keys
``status_code`` and ``message``.

The client supports optional authentication via an API key which will
be sent in the ``Authorization`` header.  To enable this behaviour,
initialise the client with ``api_key='<your token>'``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Error = Dict[str, Any]


class BlogAPI:
    """Client for interacting with the blog API."""

    posts_path = "/api/v1/posts"

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``http://localhost:8000``.
            api_key: Optional API key.  If set, an ``Authorization``
                header with the value ``Bearer <api_key>`` will be
                included in all requests.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Seconds to wait for the server on each request.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PATCH``, ``DELETE``).
            path: Path relative to :attr:`base_url` (e.g. ``/api/v1/posts/``).
            params: Query parameters to include in the request.
            json_body: JSON body to send with the request (for POST/PATCH).
        Returns:
            A tuple ``(data, error)``. ``data`` contains the parsed JSON
            response on success and ``error`` is ``None``. On failure,
            ``data`` is ``None`` and ``error`` describes the issue.
        """
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message: Any = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("detail") or err_json.get("message") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    def _post_path(self, post_id: str) -> str:
        return f"{self.posts_path}/{post_id}"

    # ------------------------------------------------------------------
    # Post operations
    # ------------------------------------------------------------------
    def list_posts(
        self,
        *,
        author: Optional[str] = None,
        tag: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        """Retrieve posts.

        Args:
            author: Only return posts by this author.
            tag: Only return posts carrying this tag.
            sort_by: ``createdAt`` or ``updatedAt``.
            sort_order: ``ascending`` or ``descending``.
        Returns:
            A tuple ``(posts, error)``. ``posts`` is empty on failure.
        """
        params = {
            key: value
            for key, value in {
                "author": author,
                "tag": tag,
                "sortBy": sort_by,
                "sortOrder": sort_order,
            }.items()
            if value is not None
        }
        data, error = self._request("GET", f"{self.posts_path}/", params=params or None)
        if error:
            return [], error
        if isinstance(data, list):
            return data, None
        return [], None

    def get_post(self, post_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Retrieve a single post by ID."""
        return self._request("GET", self._post_path(post_id))

    def create_post(self, payload: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Create a post.

        Args:
            payload: Post fields; ``title`` is required, ``author``,
                ``contents`` and ``tags`` are optional.
        Returns:
            A tuple ``(post, error)``.
        """
        return self._request("POST", f"{self.posts_path}/", json_body=payload)

    def update_post(
        self, post_id: str, payload: Dict[str, Any]
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Change only the fields present in ``payload``."""
        return self._request("PATCH", self._post_path(post_id), json_body=payload)

    def delete_post(self, post_id: str) -> Tuple[bool, Optional[Error]]:
        """Delete a post.

        Returns:
            A tuple ``(success, error)``.
        """
        _, error = self._request("DELETE", self._post_path(post_id))
        if error:
            return False, error
        return True, None
