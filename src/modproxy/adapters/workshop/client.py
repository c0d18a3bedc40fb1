"""HTTP client for the workshop's Next.js data endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from modproxy.adapters.http_resilience import ResilienceConfig, ResilientClient
from modproxy.config.workshop import WorkshopConfig, get_workshop_config
from modproxy.domain.errors import (
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamServerError,
    UpstreamTimeoutError,
)
from modproxy.domain.model import ItemStatus, SearchPage
from modproxy.domain.ports.fetching import CatalogClient

from .schema import ChangelogResponse, ItemResponse, SearchResponse
from .translator import parse_item, parse_versions

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from modproxy.domain.model import Item, ItemVersion, SearchQuery

log = getLogger(__name__)

DATA_HEADERS = {"Accept": "*/*", "x-nextjs-data": "1"}
PAGE_HEADERS = {"Accept": "text/html,application/xhtml+xml"}


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class WorkshopClient:
    """Token-addressed access to items, listings and changelogs.

    Use as an async context manager; the underlying HTTP clients live for the duration
    of the ``async with`` block.
    """

    config: WorkshopConfig = field(default_factory=get_workshop_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _api: ResilientClient | None = field(default=None, init=False, repr=False)
    _search: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> WorkshopClient:
        self._api = self.client_factory(self.config.api)
        self._search = self.client_factory(self.config.search)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for client in (self._api, self._search):
            if client is not None:
                await client.aclose()
        self._api = self._search = None

    async def fetch_item(self, item_id: str, token: str) -> Item:
        payload = await self._get_json(
            self._data_url(token, f"workshop/{item_id}.json"),
            timeout=self.config.request_timeout_seconds,
        )
        try:
            response = ItemResponse.model_validate(payload)
            if response.page_props.asset is None:
                raise UpstreamNotFoundError(f"Item {item_id} has no asset payload")
            return parse_item(response.page_props.asset)
        except ValidationError as exc:
            raise UpstreamError(f"Malformed item payload for {item_id}: {exc}") from exc

    async def search(self, query: SearchQuery, token: str) -> SearchPage:
        params: dict[str, str | int] = {"page": query.page}
        if query.text:
            params["search"] = query.text
        if query.sort != "popularity":
            params["sort"] = query.sort

        payload = await self._get_json(
            self._data_url(token, "workshop.json"),
            client=self._search_client,
            params=params,
            timeout=self.config.request_timeout_seconds,
        )
        try:
            response = SearchResponse.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamError(f"Malformed search payload: {exc}") from exc
        assets = response.page_props.assets
        log.info("Workshop search page %d returned %d rows", query.page, len(assets.rows))
        return SearchPage(page=query.page, rows=tuple(assets.rows), total=assets.count)

    async def fetch_version_history(self, item_id: str, token: str) -> list[ItemVersion]:
        try:
            payload = await self._get_json(
                self._data_url(token, f"workshop/{item_id}/changelog.json"),
                timeout=self.config.request_timeout_seconds,
            )
            response = ChangelogResponse.model_validate(payload)
        except (UpstreamError, ValidationError) as exc:
            log.info("Could not fetch version history for %s: %s", item_id, exc)
            return []
        versions = parse_versions(response.page_props.versions)
        if not versions:
            log.info("No version history found for %s", item_id)
        return versions

    async def fetch_page(self, path: str) -> str:
        response = await self._send(
            f"{self.config.base_url}{path}",
            headers=PAGE_HEADERS,
            timeout=self.config.probe_timeout_seconds,
            follow_redirects=True,
            token_addressed=False,
        )
        return response.text

    async def probe_listing(self, token: str) -> None:
        await self._get_json(
            self._data_url(token, "workshop.json"),
            timeout=self.config.probe_timeout_seconds,
        )

    async def check_item(self, item_id: str, token: str) -> ItemStatus:
        """Tell listed, unlisted and missing ids apart.

        Unlisted items have a rendered page but no entry in the data endpoint.
        """

        try:
            await self._get_json(
                self._data_url(token, f"workshop/{item_id}.json"),
                timeout=self.config.probe_timeout_seconds,
            )
        except UpstreamNotFoundError:
            pass
        else:
            return ItemStatus(item_id, exists=True, is_listed=True)

        try:
            response = await self._api_client.get(
                f"{self.config.base_url}/workshop/{item_id}",
                headers=PAGE_HEADERS,
                timeout=self.config.probe_timeout_seconds,
                follow_redirects=False,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError(f"Timed out checking page of {item_id}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Could not check page of {item_id}: {exc}") from exc
        exists = response.status_code == httpx.codes.OK
        return ItemStatus(item_id, exists=exists, is_listed=False)

    @property
    def _api_client(self) -> ResilientClient:
        if self._api is None:
            raise RuntimeError("WorkshopClient must be used inside 'async with'")
        return self._api

    @property
    def _search_client(self) -> ResilientClient:
        if self._search is None:
            raise RuntimeError("WorkshopClient must be used inside 'async with'")
        return self._search

    def _data_url(self, token: str, path: str) -> str:
        return f"{self.config.base_url}/_next/data/{token}/{path}"

    async def _get_json(
        self,
        url: str,
        *,
        timeout: float,
        client: ResilientClient | None = None,
        params: dict[str, str | int] | None = None,
    ) -> object:
        response = await self._send(
            url,
            client=client,
            headers=DATA_HEADERS,
            params=params,
            timeout=timeout,
            token_addressed=True,
        )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Non-JSON response from {url}", status=response.status_code
            ) from exc

    async def _send(
        self,
        url: str,
        *,
        headers: dict[str, str],
        timeout: float,
        token_addressed: bool,
        client: ResilientClient | None = None,
        params: dict[str, str | int] | None = None,
        follow_redirects: bool = False,
    ) -> httpx.Response:
        http = client or self._api_client
        try:
            response = await http.get(
                url,
                headers=headers,
                params=params,
                timeout=timeout,
                follow_redirects=follow_redirects,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError(
                f"Timed out requesting {url}", token_addressed=token_addressed
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Request to {url} failed: {exc}", token_addressed=token_addressed
            ) from exc
        _raise_for_status(response, token_addressed=token_addressed)
        return response


def _raise_for_status(response: httpx.Response, *, token_addressed: bool) -> None:
    status = response.status_code
    if response.is_success:
        return
    message = f"Workshop returned {status} for {response.request.url}"
    if status == httpx.codes.NOT_FOUND:
        raise UpstreamNotFoundError(message, status=status, token_addressed=token_addressed)
    if status >= httpx.codes.INTERNAL_SERVER_ERROR:
        raise UpstreamServerError(message, status=status, token_addressed=token_addressed)
    raise UpstreamError(message, status=status, token_addressed=token_addressed)


if TYPE_CHECKING:
    _client_check: CatalogClient = WorkshopClient()


__all__ = ["WorkshopClient"]
