"""
Client utilities for reading timelines from and publishing posts to X (Twitter)
via the v2 API.

Reads (user lookup, user timeline) authenticate with the app-only bearer token.
Publishing uses OAuth1.0a (user context) when the full set of OAuth1 keys is
present, or an OAuth2 user access token with tweet.write scope otherwise.

Example:
    >>> from x_commentary.x_api.x_client import XClient
    >>> client = XClient.from_credentials(get_api_credentials())
    >>> user_id = client.get_user_id("AzoniNFT")
    >>> posts = client.get_user_posts(user_id, max_results=5)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests
from requests_oauthlib import OAuth1

from x_commentary.utils.logger import get_logger

API_BASE = "https://api.twitter.com/2"
TWEETS_ENDPOINT = f"{API_BASE}/tweets"
POST_FIELDS = "created_at,in_reply_to_user_id,referenced_tweets"

logger = get_logger(__name__)


def build_post_auth(credentials: Dict[str, str]) -> Dict[str, Optional[str]]:
    """
    Determine the auth mode for publishing from the collected credentials.

    Args:
        credentials: Mapping produced by config.settings.get_api_credentials().

    Returns:
        Dict containing credentials and a flag for oauth1 usage.

    Raises:
        RuntimeError: If required credentials are missing.
    """
    api_key = credentials.get("x_api_key") or ""
    api_secret = credentials.get("x_api_secret") or ""
    access_token = credentials.get("x_access_token") or ""
    access_token_secret = credentials.get("x_access_token_secret") or ""

    if access_token_secret:
        if not (api_key and api_secret and access_token):
            raise RuntimeError("OAuth1 requires X_API_KEY, X_API_SECRET, X_ACCESS_TOKEN, and X_ACCESS_TOKEN_SECRET.")
        return {
            "oauth1": True,
            "api_key": api_key,
            "api_secret": api_secret,
            "access_token": access_token,
            "access_token_secret": access_token_secret,
        }

    # OAuth2 user token (tweet.write scope) when OAuth1 secrets are not supplied.
    oauth2_token = credentials.get("x_oauth2_access_token") or ""
    if oauth2_token:
        return {
            "oauth1": False,
            "api_key": None,
            "api_secret": None,
            "access_token": oauth2_token,
            "access_token_secret": None,
        }

    raise RuntimeError(
        "Missing credentials: set OAuth1 keys including X_ACCESS_TOKEN_SECRET, or X_OAUTH2_ACCESS_TOKEN (tweet.write)."
    )


def _raise_for_status(response: requests.Response, context: str) -> None:
    if not 200 <= response.status_code < 300:
        # Aid debugging by exposing returned headers (e.g., x-rate-limit-reset, x-access-level).
        logger.debug(f"X API response headers: {dict(response.headers)}")
        message = f"X API {context} failed ({response.status_code}): {response.text}"
        raise requests.HTTPError(message, response=response)


def _json(response: requests.Response) -> Dict[str, Any]:
    try:
        return response.json()
    except ValueError as exc:
        raise ValueError("Failed to decode X API response as JSON.") from exc


class XClient:
    """
    Minimal X API v2 client covering user lookup, user timelines and post creation.
    """

    def __init__(
        self,
        bearer_token: str,
        post_auth: Optional[Dict[str, Optional[str]]] = None,
        timeout: int = 30,
    ):
        """
        Args:
            bearer_token: App-only bearer token used for read endpoints.
            post_auth: Output of build_post_auth(); None makes create_post unavailable.
            timeout: Per-request timeout in seconds.

        Raises:
            RuntimeError: If the bearer token is empty.
        """
        if not bearer_token:
            raise RuntimeError("X_BEARER_TOKEN is required to read user timelines.")
        self.bearer_token = bearer_token
        self.post_auth = post_auth
        self.timeout = timeout

    @classmethod
    def from_credentials(cls, credentials: Dict[str, str], require_post_auth: bool = True) -> "XClient":
        post_auth = build_post_auth(credentials) if require_post_auth else None
        return cls(credentials.get("x_bearer_token") or "", post_auth=post_auth)

    def _read_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.bearer_token}"}

    def get_user_id(self, username: str) -> str:
        """
        Resolve a handle to its account ID.

        Args:
            username: Handle without the leading '@'.

        Returns:
            The account ID string.

        Raises:
            requests.HTTPError: For non-success HTTP responses.
            RuntimeError: If the response carries no user (e.g. suspended account).
        """
        url = f"{API_BASE}/users/by/username/{username}"
        response = requests.get(url, headers=self._read_headers(), timeout=self.timeout)
        _raise_for_status(response, f"user lookup for @{username}")
        payload = _json(response)
        user = payload.get("data") or {}
        if not user.get("id"):
            raise RuntimeError(f"No user returned for @{username}: {payload.get('errors') or payload}")
        return str(user["id"])

    def get_user_posts(
        self,
        user_id: str,
        max_results: int = 5,
        since_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch the most recent posts for an account, newest first.

        Args:
            user_id: Account ID from get_user_id().
            max_results: Page size (X accepts 5..100).
            since_id: Only return posts newer than this ID when given.

        Returns:
            Post dictionaries with id, text, created_at and reply metadata.
            Empty when the account has no posts in range.

        Raises:
            requests.HTTPError: For non-success HTTP responses.
            ValueError: For JSON decoding errors in the API response.
        """
        params: Dict[str, Any] = {"max_results": max_results, "tweet.fields": POST_FIELDS}
        if since_id:
            params["since_id"] = since_id
        url = f"{API_BASE}/users/{user_id}/tweets"
        response = requests.get(url, headers=self._read_headers(), params=params, timeout=self.timeout)
        _raise_for_status(response, f"timeline fetch for user {user_id}")
        return list(_json(response).get("data") or [])

    def get_latest_post_id(self, user_id: str, max_results: int = 5) -> Optional[str]:
        posts = self.get_user_posts(user_id, max_results=max_results)
        if not posts:
            return None
        return str(posts[0]["id"])

    def create_post(self, text: str, in_reply_to_post_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Publish a post, optionally threaded as a reply to an existing post.

        Args:
            text: Full post body.
            in_reply_to_post_id: Post ID to reply to; None publishes a standalone post.

        Returns:
            Parsed JSON response from the X API.

        Raises:
            RuntimeError: If no publishing credentials were configured.
            requests.HTTPError: For non-success HTTP responses.
            ValueError: For JSON decoding errors in the API response.
        """
        if not self.post_auth:
            raise RuntimeError("Publishing credentials are not configured.")

        headers: Dict[str, str] = {"Content-Type": "application/json"}
        auth_obj = None
        if self.post_auth["oauth1"]:
            auth_obj = OAuth1(
                self.post_auth["api_key"],
                self.post_auth["api_secret"],
                self.post_auth["access_token"],
                self.post_auth["access_token_secret"],
            )
        else:
            headers["Authorization"] = f"Bearer {self.post_auth['access_token']}"

        payload: Dict[str, Any] = {"text": text}
        if in_reply_to_post_id:
            payload["reply"] = {"in_reply_to_tweet_id": in_reply_to_post_id}

        response = requests.post(
            TWEETS_ENDPOINT,
            json=payload,
            headers=headers,
            auth=auth_obj,
            timeout=self.timeout,
        )
        _raise_for_status(response, "post creation")
        return _json(response)
