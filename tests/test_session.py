"""Tests for the UI-facing scan session, including end-to-end flows."""

import asyncio

import httpx
import pytest

from halalscan.client import ConnectivityStatus, JsonFileStore, RegistryClient, ScanSession
from halalscan.config import Settings
from halalscan.main import app
from halalscan.schemas import AwaitingAdd, EventKind, HalalStatus, ResolutionSource


class TestScanEvents:
    """Tests for scan handling."""

    @pytest.mark.asyncio
    async def test_debounced_scan_returns_none(self, session, registry):
        """Test a repeat scan inside the cool-down is ignored."""
        first = await session.on_barcode_scanned("000111", now=0)
        second = await session.on_barcode_scanned("000111", now=1)

        assert first.kind == "awaiting_add"
        assert second is None
        assert registry.count("/scan-product") == 1

    @pytest.mark.asyncio
    async def test_rescan_resets_debounce(self, session):
        """Test the rescan action accepts the same code again."""
        await session.on_barcode_scanned("000111", now=0)
        session.on_rescan_requested()

        assert await session.on_barcode_scanned("000111", now=1) is not None

    @pytest.mark.asyncio
    async def test_invalid_scan_fails(self, session):
        """Test a malformed code is reported instead of raised."""
        outcome = await session.on_barcode_scanned("12 34", now=0)

        assert outcome.kind == "failed"
        assert outcome.code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_events_emitted(self, session, registry):
        """Test listeners see resolution and connectivity events."""
        events = []
        session.add_listener(events.append)
        registry.unreachable = True

        await session.on_barcode_scanned("123", now=0)

        kinds = [e.kind for e in events]
        assert kinds == [EventKind.CONNECTIVITY, EventKind.RESOLUTION]
        assert events[0].payload == ConnectivityStatus.OFFLINE
        assert events[1].payload == AwaitingAdd(barcode="123", offline=True)

    @pytest.mark.asyncio
    async def test_failing_listener_isolated(self, session):
        """Test a broken listener does not break the scan."""
        def broken(event):
            raise RuntimeError("listener bug")

        session.add_listener(broken)
        outcome = await session.on_barcode_scanned("000111", now=0)

        assert outcome.kind == "awaiting_add"

    @pytest.mark.asyncio
    async def test_concurrent_scans_coalesce(self, tmp_path):
        """Test simultaneous resolutions of one code share a registry call."""
        calls = []

        async def slow_handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            await asyncio.sleep(0.05)
            return httpx.Response(200, json={"status": "Product Not Available"})

        remote = RegistryClient(
            "http://registry.test", transport=httpx.MockTransport(slow_handler)
        )
        session = ScanSession(remote, JsonFileStore(tmp_path), cool_down_ms=3000)

        first, second = await asyncio.gather(
            session.on_barcode_scanned("777", now=0),
            session.on_barcode_scanned("777", now=5000),
        )

        assert first == second
        assert calls == ["/scan-product"]
        await session.aclose()


class TestSubmitEvents:
    """Tests for the add-product form handler."""

    @pytest.mark.asyncio
    async def test_invalid_fields_reported(self, session):
        """Test validation errors come back as a failure outcome."""
        outcome = await session.on_submit_requested({"barcode": "000111", "name": ""})

        assert outcome.kind == "failed"
        assert outcome.code == "VALIDATION_ERROR"
        assert outcome.retryable is False

    @pytest.mark.asyncio
    async def test_rejection_reported_retryable(self, session, registry):
        """Test a registry refusal comes back as a retryable failure."""
        registry.rejected_barcodes.add("000111")

        outcome = await session.on_submit_requested({"barcode": "000111", "name": "Biscuit"})

        assert outcome.kind == "failed"
        assert outcome.retryable is True
        assert await session.queue.size() == 0

    @pytest.mark.asyncio
    async def test_type_key_accepted(self, session, registry):
        """Test the wire name of the category is accepted as a form key."""
        outcome = await session.on_submit_requested({
            "barcode": "4006381", "name": "Pencil", "type": "non-food"
        })

        assert outcome.record.status == HalalStatus.NON_FOOD_ITEM
        assert registry.added[0]["type"] == "non-food"


class TestOfflineScenario:
    """Tests for the offline-then-reconnect flow."""

    @pytest.mark.asyncio
    async def test_offline_add_then_sync(self, session, registry):
        """Test a product added offline reaches the registry after reconnect."""
        registry.unreachable = True

        outcome = await session.on_barcode_scanned("000111", now=0)
        assert outcome == AwaitingAdd(barcode="000111", offline=True)

        submitted = await session.on_submit_requested({
            "barcode": "000111",
            "name": "Biscuit",
            "category": "food",
            "ingredients": "flour,water",
            "status": "Unknown",
        })
        assert submitted.queued is True

        # Visible locally before any sync
        rescanned = await session.on_barcode_scanned("000111", now=10_000)
        assert rescanned.source == ResolutionSource.CACHE

        registry.unreachable = False
        assert await session.on_reconnect_requested() is True

        assert session.connectivity.is_online
        assert await session.queue.size() == 0
        assert registry.products["000111"]["ingredients"] == ["flour", "water"]

    @pytest.mark.asyncio
    async def test_manual_sync_emits_report(self, session, registry):
        """Test a manual sync is reported to listeners."""
        events = []
        session.add_listener(events.append)
        session.connectivity.mark_offline("test")
        await session.on_submit_requested({"barcode": "A1", "name": "Tea"})

        report = await session.on_sync_requested()

        assert report.succeeded == 1
        assert events[-1].kind == EventKind.SYNC

    @pytest.mark.asyncio
    async def test_background_reconnect(self, remote, store, registry):
        """Test the reconnect task probes while offline and drains the queue."""
        session = ScanSession(remote, store, probe_interval_seconds=0.01)
        session.connectivity.mark_offline("test")
        await session.on_submit_requested({"barcode": "A1", "name": "Tea"})

        session.start()
        try:
            for _ in range(100):
                if session.connectivity.is_online and await session.queue.size() == 0:
                    break
                await asyncio.sleep(0.01)
        finally:
            await session.aclose()

        assert session.connectivity.is_online
        assert registry.count("/add-product") == 1
        assert not session.reconnect.is_running


class TestSessionLifecycle:
    """Tests for sessions created outside a running event loop."""

    def test_built_before_loop_starts(self, remote, store, record_factory):
        """Test concurrent writes work when the session predates the loop."""
        session = ScanSession(remote, store)

        async def write_concurrently():
            await asyncio.gather(*(
                session.cache.put(record_factory(f"C{i}")) for i in range(5)
            ), *(
                session.queue.enqueue(record_factory(f"Q{i}")) for i in range(5)
            ))
            return len(await session.cache.all()), await session.queue.size()

        assert asyncio.run(write_concurrently()) == (5, 5)


class TestFromSettings:
    """Tests for building a session from configuration."""

    def test_settings_wiring(self, tmp_path):
        """Test timeouts, cool-down and probe interval come from settings."""
        settings = Settings(
            api_base_url="http://registry.test/",
            scan_cooldown_ms=500,
            probe_interval_seconds=7,
            storage_dir=str(tmp_path),
        )

        session = ScanSession.from_settings(settings)

        assert session.remote.base_url == "http://registry.test"
        assert session.debouncer.cool_down_ms == 500
        assert session.store.directory == tmp_path
        assert session.reconnect is not None

    def test_auto_probe_disabled(self, tmp_path):
        """Test the reconnect task can be switched off."""
        settings = Settings(auto_probe_enabled=False, storage_dir=str(tmp_path))
        assert ScanSession.from_settings(settings).reconnect is None


class TestEndToEnd:
    """Tests running the engine against the registry application."""

    @pytest.mark.asyncio
    async def test_scan_add_rescan(self, override_db, tmp_path):
        """Test unknown scan, add, then lookup from a fresh device."""
        transport = httpx.ASGITransport(app=app)
        device = ScanSession(
            RegistryClient("http://registry.test", transport=transport),
            JsonFileStore(tmp_path / "device1"),
        )

        outcome = await device.on_barcode_scanned("000111", now=0)
        assert outcome == AwaitingAdd(barcode="000111", offline=False)

        submitted = await device.on_submit_requested({
            "barcode": "000111",
            "name": "Biscuit",
            "category": "food",
            "ingredients": "flour,water",
            "status": "Unknown",
        })
        assert submitted.remote is True
        await device.aclose()

        other = ScanSession(
            RegistryClient("http://registry.test", transport=transport),
            JsonFileStore(tmp_path / "device2"),
        )
        found = await other.on_barcode_scanned("000111", now=0)

        assert found.source == ResolutionSource.REMOTE
        assert found.record.name == "Biscuit"
        assert found.record.ingredients == ["flour", "water"]
        assert found.record.status == HalalStatus.UNKNOWN
        await other.aclose()
