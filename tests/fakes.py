"""Scripted page controller and extraction behaviours for tests."""

import asyncio
from typing import Awaitable, Callable, Dict, List

from harvester.exceptions import NavigationFailure
from harvester.extractor import normalize_payload
from harvester.page_controller import PageController

Behaviour = Callable[["FakeController", str], Awaitable[list]]


def post(url: str, content: str, name: str = "Acme") -> dict:
    return {
        "pageUrl": url,
        "pageName": name,
        "content": content,
        "postDate": "2024-01-02 03:04:05",
        "likes": "12",
        "comments": "3",
    }


def returns(rows: List[dict]) -> Behaviour:
    async def behaviour(controller, url):
        return normalize_payload(rows, url)
    return behaviour


def stalls() -> Behaviour:
    async def behaviour(controller, url):
        await asyncio.Event().wait()
    return behaviour


def raises(error: Exception) -> Behaviour:
    async def behaviour(controller, url):
        raise error
    return behaviour


def heartbeats(count: int, interval: float, rows: List[dict]) -> Behaviour:
    async def behaviour(controller, url):
        for _ in range(count):
            await asyncio.sleep(interval)
            controller.heartbeat()
        return normalize_payload(rows, url)
    return behaviour


def resolves_late(delay: float, rows: List[dict]) -> Behaviour:
    """Ignores cancellation and still produces rows after the stall."""
    async def behaviour(controller, url):
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            await asyncio.sleep(0)
        controller.late_results.append(url)
        return normalize_payload(rows, url)
    return behaviour


class FakeController(PageController):
    """Page controller driven by a per-URL script instead of a browser."""

    def __init__(self, script: Dict[str, Behaviour], failing_navigation=()):
        self.script = script
        self.failing_navigation = set(failing_navigation)
        self.navigated: List[str] = []
        self.extracted: List[str] = []
        self.late_results: List[str] = []
        self._heartbeat = None

    def subscribe_heartbeat(self, callback):
        self._heartbeat = callback

    def heartbeat(self):
        if self._heartbeat is not None:
            self._heartbeat()

    async def navigate(self, url):
        self.navigated.append(url)
        if url in self.failing_navigation:
            raise NavigationFailure(f"Could not load {url}: net::ERR_NAME_NOT_RESOLVED")

    async def extract(self, origin_url):
        self.extracted.append(origin_url)
        return await self.script[origin_url](self, origin_url)


