"""
Tests for the redirect resolver.

Uses real SQLite-backed stores for the happy paths and small LinkStore fakes
to inject failures.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional

import pytest
from starlette import status

from app.core.exceptions import StoreUnavailableError
from app.db.models import Link
from app.db.store import LinkStore
from app.services.resolver import Resolution, ResolutionKind, Resolver

FIXED_NOW = datetime(2024, 1, 15, 9, 0, 0)


def fixed_clock() -> datetime:
    return FIXED_NOW


class SteppingClock:
    """Clock that moves forward one second on every call."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.current = start
        self.readings: list[datetime] = []

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        self.readings.append(self.current)
        return self.current


class FakeLinkStore(LinkStore):
    """In-memory store with switchable failures."""

    def __init__(self, links: Optional[dict[str, str]] = None):
        self.links = dict(links or {})
        self.clicks: dict[str, int] = {}
        self.find_error: Optional[Exception] = None
        self.increment_error: Optional[Exception] = None
        self.lookups: list[str] = []

    async def find_by_code(self, code):
        self.lookups.append(code)
        if self.find_error is not None:
            raise self.find_error
        if code not in self.links:
            return None
        return Link(code=code, url=self.links[code], clicks=self.clicks.get(code, 0))

    async def increment_clicks(self, code, now):
        if self.increment_error is not None:
            raise self.increment_error
        if code in self.links:
            self.clicks[code] = self.clicks.get(code, 0) + 1

    async def create(self, code, url):
        self.links[code] = url
        return Link(code=code, url=url)

    async def delete(self, code):
        return self.links.pop(code, None) is not None

    async def list_all(self):
        return [Link(code=code, url=url) for code, url in self.links.items()]

    async def ping(self):
        return None


class TestResolutionShapes:
    """Test the status codes carried by each outcome."""

    def test_outcome_status_codes(self):
        """Test that each outcome carries its HTTP status."""
        assert Resolution.not_applicable().status_code is None
        assert Resolution.not_found().status_code == status.HTTP_404_NOT_FOUND
        assert Resolution.store_unavailable("down").status_code == status.HTTP_503_SERVICE_UNAVAILABLE

        redirect = Resolution.redirect("https://example.com")
        assert redirect.status_code == status.HTTP_302_FOUND
        assert redirect.target_url == "https://example.com"


class TestResolve:
    """Test resolution against a real store."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("segment", ["", "abc", "abc123/extra", "favicon.ico", "abcd12345", "abc-12"])
    async def test_non_shortcode_segments_are_not_applicable(self, store, segment):
        """Test that malformed segments are left to normal routing."""
        resolver = Resolver(store, clock=fixed_clock)

        resolution = await resolver.resolve(segment)

        assert resolution.kind == ResolutionKind.NOT_APPLICABLE

    @pytest.mark.asyncio
    async def test_non_shortcode_segments_never_reach_the_store(self):
        """Test that malformed segments cause no lookup."""
        fake = FakeLinkStore({"abc123": "https://example.com"})
        resolver = Resolver(fake)

        await resolver.resolve("abc123/extra")
        await resolver.resolve("x")

        assert fake.lookups == []

    @pytest.mark.asyncio
    async def test_unknown_code_is_not_found(self, store):
        """Test that repeated lookups of an unknown code stay not found and create nothing."""
        resolver = Resolver(store, clock=fixed_clock)

        first = await resolver.resolve("zzz999")
        second = await resolver.resolve("zzz999")

        assert first.kind == ResolutionKind.NOT_FOUND
        assert second.kind == ResolutionKind.NOT_FOUND
        assert first.status_code == status.HTTP_404_NOT_FOUND
        assert await store.find_by_code("zzz999") is None

    @pytest.mark.asyncio
    async def test_known_code_redirects_and_counts(self, store):
        """Test that a known code redirects and records one click."""
        await store.create("abc123", "https://example.com")
        resolver = Resolver(store, clock=fixed_clock)

        resolution = await resolver.resolve("abc123")

        assert resolution.kind == ResolutionKind.REDIRECT
        assert resolution.status_code == status.HTTP_302_FOUND
        assert resolution.target_url == "https://example.com"

        link = await store.find_by_code("abc123")
        assert link.clicks == 1
        assert link.last_clicked.replace(tzinfo=None) == FIXED_NOW

    @pytest.mark.asyncio
    async def test_sequential_resolves_count_every_click(self, store):
        """Test that N sequential resolves add N clicks and keep the last timestamp."""
        await store.create("seq1234", "https://example.com/seq")
        clock = SteppingClock()
        resolver = Resolver(store, clock=clock)

        for _ in range(5):
            resolution = await resolver.resolve("seq1234")
            assert resolution.kind == ResolutionKind.REDIRECT

        link = await store.find_by_code("seq1234")
        assert link.clicks == 5
        assert len(clock.readings) == 5
        assert link.last_clicked.replace(tzinfo=None) == clock.readings[-1]
        assert link.last_clicked.replace(tzinfo=None) == FIXED_NOW + timedelta(seconds=5)

    @pytest.mark.asyncio
    async def test_redirect_target_is_returned_verbatim(self, store):
        """Test that the stored URL is returned unmodified."""
        target = "https://example.com/a path?q=1&r=%20#frag"
        await store.create("verb1234", target)
        resolver = Resolver(store, clock=fixed_clock)

        resolution = await resolver.resolve("verb1234")

        assert resolution.target_url == target

    @pytest.mark.asyncio
    async def test_concurrent_resolves_all_redirect(self, store):
        """Test that concurrent resolves of one code all redirect."""
        await store.create("conc123", "https://example.com/concurrent")
        resolver = Resolver(store, clock=fixed_clock)

        results = await asyncio.gather(*(resolver.resolve("conc123") for _ in range(10)))

        assert all(r.kind == ResolutionKind.REDIRECT for r in results)
        link = await store.find_by_code("conc123")
        assert 1 <= link.clicks <= 10


class TestStoreFailures:
    """Test how store failures shape the outcome."""

    @pytest.mark.asyncio
    async def test_unreachable_store_is_store_unavailable(self, unavailable_store):
        """Test that an unreachable database yields store unavailable."""
        resolver = Resolver(unavailable_store)

        resolution = await resolver.resolve("abc123")

        assert resolution.kind == ResolutionKind.STORE_UNAVAILABLE
        assert resolution.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_lookup_timeout_is_store_unavailable(self):
        """Test that a timed-out lookup yields store unavailable with its message."""
        fake = FakeLinkStore()
        fake.find_error = StoreUnavailableError("lookup of 'abc123' timed out after 0.1s")
        resolver = Resolver(fake)

        resolution = await resolver.resolve("abc123")

        assert resolution.kind == ResolutionKind.STORE_UNAVAILABLE
        assert "timed out" in resolution.message

    @pytest.mark.asyncio
    async def test_accounting_failure_still_redirects(self, caplog):
        """Test that a failing click update is logged and the redirect still happens."""
        fake = FakeLinkStore({"abc123": "https://example.com"})
        fake.increment_error = RuntimeError("disk full")
        resolver = Resolver(fake)

        with caplog.at_level("ERROR", logger="app.services.resolver"):
            resolution = await resolver.resolve("abc123")

        assert resolution.kind == ResolutionKind.REDIRECT
        assert resolution.target_url == "https://example.com"
        assert "Failed to record click for 'abc123'" in caplog.text

    @pytest.mark.asyncio
    async def test_accounting_unavailable_still_redirects(self):
        """Test that an unreachable store during the click update still redirects."""
        fake = FakeLinkStore({"abc123": "https://example.com"})
        fake.increment_error = StoreUnavailableError("connection reset")
        resolver = Resolver(fake)

        resolution = await resolver.resolve("abc123")

        assert resolution.kind == ResolutionKind.REDIRECT

    @pytest.mark.asyncio
    async def test_unexpected_lookup_error_propagates(self):
        """Test that errors other than store unavailable reach the caller."""
        fake = FakeLinkStore({"abc123": "https://example.com"})
        fake.find_error = RuntimeError("bug")
        resolver = Resolver(fake)

        with pytest.raises(RuntimeError, match="bug"):
            await resolver.resolve("abc123")


class TestDetachedAccounting:
    """Test the detached click accounting mode."""

    @pytest.mark.asyncio
    async def test_detached_update_lands_after_drain(self, store):
        """Test that every detached click update is applied once drained."""
        await store.create("det1234", "https://example.com/detached")
        resolver = Resolver(store, await_accounting=False, clock=fixed_clock)

        for _ in range(3):
            resolution = await resolver.resolve("det1234")
            assert resolution.kind == ResolutionKind.REDIRECT

        await resolver.drain()

        assert resolver.pending_count == 0
        link = await store.find_by_code("det1234")
        assert link.clicks == 3
        assert link.last_clicked.replace(tzinfo=None) == FIXED_NOW

    @pytest.mark.asyncio
    async def test_detached_failure_is_swallowed(self):
        """Test that a failing detached update neither raises nor lingers."""
        fake = FakeLinkStore({"abc123": "https://example.com"})
        fake.increment_error = RuntimeError("disk full")
        resolver = Resolver(fake, await_accounting=False)

        resolution = await resolver.resolve("abc123")
        await resolver.aclose()

        assert resolution.kind == ResolutionKind.REDIRECT
        assert resolver.pending_count == 0

    @pytest.mark.asyncio
    async def test_detached_fake_counts_every_click(self):
        """Test that draining waits for every dispatched update."""
        fake = FakeLinkStore({"abc123": "https://example.com"})
        resolver = Resolver(fake, await_accounting=False)

        for _ in range(4):
            await resolver.resolve("abc123")
        await resolver.drain()

        assert fake.clicks["abc123"] == 4
