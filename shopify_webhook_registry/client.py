"""Shopify Admin API client used for webhook subscription management.

Thin wrapper around a ``requests.Session`` that knows the Admin API URL
layout, authenticates with an access token, retries throttled or
unavailable responses a bounded number of times and exposes REST
``Link``-header and GraphQL cursor pagination.
"""

import json
import logging
import re
import time
from urllib.parse import parse_qs, urlparse

import requests

from . import conf
from .exceptions import (
    GraphqlQueryError,
    HttpMaxRetriesError,
    HttpRequestError,
    HttpResponseError,
    HttpThrottlingError,
)
from .queries import SUBSCRIPTION_PAGE_SIZE, build_list_query

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
USER_AGENT = "shopify-webhook-registry"
RETRIABLE_STATUS_CODES = frozenset({429, 503})
DEFAULT_RETRY_WAIT_TIME = 1  # seconds
DEFAULT_LIMIT = "50"
LINK_HEADER_RE = re.compile(r'<([^<]+)>; rel="([^"]+)"')


class PageInfo:
    """Pagination state parsed from a REST response ``Link`` header.

    ``prev_page`` and ``next_page`` are ``(path, query)`` pairs that can be
    passed straight back to :meth:`ShopifyAdminClient.get`.
    """

    def __init__(self, limit=DEFAULT_LIMIT):
        self.limit = limit
        self.fields = None
        self.previous_page_url = None
        self.next_page_url = None
        self.prev_page = None
        self.next_page = None

    def __repr__(self):
        return (
            f"PageInfo(limit={self.limit!r}, prev={self.previous_page_url!r}, "
            f"next={self.next_page_url!r})"
        )


class RestResponse:
    def __init__(self, body, headers, page_info=None):
        self.body = body
        self.headers = headers
        self.page_info = page_info


def _retry_after(response):
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _error_message(body):
    if isinstance(body, dict) and "errors" in body:
        errors = body["errors"]
        return json.dumps(errors) if not isinstance(errors, str) else errors
    return str(body)[:2000]


class ShopifyAdminClient:
    def __init__(
        self,
        shop,
        access_token,
        api_version=None,
        retries=None,
        timeout=None,
        session=None,
    ):
        if not access_token:
            raise ValueError("Missing access token when creating an Admin API client")
        self.shop = shop
        self.access_token = access_token
        self.api_version = (api_version or conf.api_version()).strip()
        self.retries = conf.get_setting("RETRIES") if retries is None else retries
        self.timeout = conf.get_setting("TIMEOUT") if timeout is None else timeout
        self.session = session or requests.Session()

    @property
    def base_path(self):
        return f"/admin/api/{self.api_version}/"

    def _url(self, path):
        return f"https://{self.shop}{self.base_path}{path.lstrip('/')}"

    def _headers(self, extra_headers=None):
        headers = dict(extra_headers or {})
        headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
                ACCESS_TOKEN_HEADER: self.access_token,
            }
        )
        return headers

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request(self, method, path, data=None, query=None, extra_headers=None, tries=None):
        """Send one Admin API request, retrying retriable failures.

        Returns a :class:`RestResponse`. Raises HttpResponseError (or
        HttpThrottlingError for 429) for error responses, HttpRequestError
        when the shop cannot be reached and HttpMaxRetriesError once every
        allowed retry has failed.
        """
        max_tries = self.retries + 1 if tries is None else max(tries, 1)
        url = self._url(path)
        body = data if data is None or isinstance(data, str) else json.dumps(data)

        response = None
        for attempt in range(1, max_tries + 1):
            try:
                response = self.session.request(
                    method,
                    url,
                    data=body,
                    params=query,
                    headers=self._headers(extra_headers),
                    timeout=self.timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt < max_tries:
                    logger.warning(
                        "Admin API request to %s failed (%s), retry %d/%d",
                        url, exc, attempt, max_tries - 1,
                    )
                    time.sleep(DEFAULT_RETRY_WAIT_TIME)
                    continue
                if max_tries > 1:
                    raise HttpMaxRetriesError(
                        f"Attempted maximum number of {max_tries - 1} network retries. "
                        f"Last message - {exc}"
                    ) from exc
                raise HttpRequestError(f"Admin API request to {url} failed: {exc}") from exc

            if response.status_code not in RETRIABLE_STATUS_CODES:
                break
            if attempt < max_tries:
                wait = _retry_after(response)
                if wait is None:
                    wait = DEFAULT_RETRY_WAIT_TIME
                logger.warning(
                    "Admin API returned %s for %s, retrying in %ss (%d/%d)",
                    response.status_code, url, wait, attempt, max_tries - 1,
                )
                time.sleep(wait)
            elif max_tries > 1:
                raise HttpMaxRetriesError(
                    f"Attempted maximum number of {max_tries - 1} network retries. "
                    f"Last message - HTTP {response.status_code} {response.reason}"
                )

        return self._build_response(response, query)

    def _build_response(self, response, query):
        headers = dict(response.headers)
        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = response.text

        if not response.ok:
            message = (
                f"Received an error response ({response.status_code} {response.reason}) "
                f"from Shopify:\n{_error_message(body)}"
            )
            if response.status_code == 429:
                raise HttpThrottlingError(
                    message,
                    retry_after=_retry_after(response),
                    status_code=response.status_code,
                    reason=response.reason,
                    body=body,
                    headers=headers,
                )
            raise HttpResponseError(
                message,
                status_code=response.status_code,
                reason=response.reason,
                body=body,
                headers=headers,
            )

        page_info = None
        link = response.headers.get("Link")
        if link is not None:
            page_info = self._parse_page_info(link, query)
        return RestResponse(body, headers, page_info)

    def _parse_page_info(self, link, query):
        limit = (query or {}).get("limit")
        page_info = PageInfo(str(limit) if limit else DEFAULT_LIMIT)

        for part in link.split(", "):
            match = LINK_HEADER_RE.match(part.strip())
            if not match:
                continue
            link_url, rel = match.groups()
            parsed = urlparse(link_url)
            params = {key: values[0] for key, values in parse_qs(parsed.query).items()}

            if page_info.fields is None and params.get("fields"):
                page_info.fields = params["fields"].split(",")
            if not params.get("page_info"):
                continue

            page_path = parsed.path
            if page_path.startswith(self.base_path):
                page_path = page_path[len(self.base_path):]
            if rel == "previous":
                page_info.previous_page_url = link_url
                page_info.prev_page = (page_path, params)
            elif rel == "next":
                page_info.next_page_url = link_url
                page_info.next_page = (page_path, params)
        return page_info

    def get(self, path, query=None, **kwargs):
        return self.request("GET", path, query=query, **kwargs)

    def post(self, path, data, **kwargs):
        return self.request("POST", path, data=data, **kwargs)

    def put(self, path, data, **kwargs):
        return self.request("PUT", path, data=data, **kwargs)

    def delete(self, path, **kwargs):
        return self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------
    # GraphQL
    # ------------------------------------------------------------------

    def graphql(self, query, variables=None, **kwargs):
        """Run a GraphQL document against ``graphql.json`` and return the body."""
        payload = {"query": query}
        if variables:
            payload["variables"] = variables
        body = self.post("graphql.json", payload, **kwargs).body
        if isinstance(body, dict) and body.get("errors"):
            raise GraphqlQueryError(
                f"GraphQL query returned errors: {_error_message(body)}", body=body
            )
        return body

    def iter_webhook_subscriptions(self, page_size=SUBSCRIPTION_PAGE_SIZE):
        """Yield every webhook subscription node, following GraphQL cursors."""
        cursor = None
        while True:
            body = self.graphql(build_list_query(self.api_version, page_size, cursor))
            connection = body["data"]["webhookSubscriptions"]
            for edge in connection["edges"]:
                yield edge["node"]
            page = connection.get("pageInfo") or {}
            if not page.get("hasNextPage"):
                return
            cursor = page["endCursor"]
