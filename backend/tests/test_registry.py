"""
Tests for the Watcher Registry.

Requires Python 3.11+.
"""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio
from watchdog.events import FileCreatedEvent, FileDeletedEvent, FileModifiedEvent

from autosync.models import ActionKind, WatcherConfig
from autosync.watcher.classifier import IgnorePatternClassifier
from autosync.watcher.registry import WatcherRegistry
from conftest import RecordingTransport


FULL_SYNC = WatcherConfig(files="**/*", autoUpload=True, autoDelete=True)
UPLOAD_ONLY = WatcherConfig(files="**/*", autoUpload=True)


@pytest_asyncio.fixture
async def registry(transport, status_sink, observer_factory) -> WatcherRegistry:
    factory, _ = observer_factory
    return WatcherRegistry(
        transport=transport,
        classifier=IgnorePatternClassifier([".git"]),
        status=status_sink,
        observer_factory=factory,
    )


async def settle() -> None:
    """Let marshalled events and issued transfers run."""
    for _ in range(5):
        await asyncio.sleep(0)


class TestWatcherConfig:
    """Test cases for WatcherConfig."""

    def test_camel_case_aliases(self):
        """Test editor-style keys."""
        config = WatcherConfig.model_validate({"files": "**/*", "autoUpload": True, "autoDelete": False})

        assert config.auto_upload is True
        assert config.auto_delete is False
        assert not config.is_disabled

    def test_disabled_sentinel(self):
        """Test files=False disables the watcher."""
        assert WatcherConfig(files=False, auto_upload=True, auto_delete=True).is_disabled

    def test_no_auto_flags(self):
        """Test that a pattern without auto flags is disabled."""
        assert WatcherConfig(files="**/*").is_disabled


class TestWatcherRegistry:
    """Test cases for WatcherRegistry lifecycle."""

    @pytest.mark.asyncio
    async def test_create_installs_watcher(self, registry, observer_factory):
        """Test a plain create."""
        _, created = observer_factory

        watcher = registry.create("/proj", FULL_SYNC)

        assert watcher is not None
        assert registry.is_active("/proj")
        assert registry.get("/proj") is watcher
        assert registry.active_roots == [Path("/proj")]
        assert created[0].started

    @pytest.mark.asyncio
    async def test_create_twice_replaces(self, registry, observer_factory):
        """Test that recreating disposes the old watcher first."""
        _, created = observer_factory

        first = registry.create("/proj", FULL_SYNC)
        second = registry.create("/proj", UPLOAD_ONLY)

        assert first.is_disposed
        assert created[0].stopped
        assert not second.is_disposed
        assert registry.active_roots == [Path("/proj")]

    @pytest.mark.asyncio
    async def test_create_with_noop_config_still_disposes(self, registry, observer_factory):
        """Test that a disabling config removes the existing watcher."""
        _, created = observer_factory

        first = registry.create("/proj", FULL_SYNC)
        result = registry.create("/proj", WatcherConfig(files="**/*"))

        assert result is None
        assert first.is_disposed
        assert created[0].stopped
        assert not registry.is_active("/proj")

    @pytest.mark.asyncio
    async def test_create_with_files_false(self, registry, observer_factory):
        """Test the disabled sentinel installs nothing."""
        _, created = observer_factory

        result = registry.create("/proj", WatcherConfig(files=False, autoUpload=True, autoDelete=True))

        assert result is None
        assert not registry.is_active("/proj")
        assert created == []

    @pytest.mark.asyncio
    async def test_create_without_config_is_noop(self, registry, observer_factory):
        """Test that a missing config leaves an existing watcher alone."""
        _, created = observer_factory

        watcher = registry.create("/proj", FULL_SYNC)
        assert registry.create("/proj", None) is None

        assert registry.get("/proj") is watcher
        assert not created[0].stopped

    @pytest.mark.asyncio
    async def test_dispose_is_idempotent(self, registry, observer_factory):
        """Test disposing twice and disposing an unknown root."""
        _, created = observer_factory
        registry.create("/proj", FULL_SYNC)

        registry.dispose("/proj")
        registry.dispose("/proj")
        registry.dispose("/never-watched")

        assert not registry.is_active("/proj")
        assert created[0].stopped

    @pytest.mark.asyncio
    async def test_roots_are_independent(self, registry):
        """Test that roots are keyed separately."""
        registry.create("/proj", FULL_SYNC)
        registry.create("/other", UPLOAD_ONLY)
        registry.dispose("/proj")

        assert registry.active_roots == [Path("/other")]

    @pytest.mark.asyncio
    async def test_missing_root_is_not_installed(self, transport, tmp_path):
        """Test that a root the OS cannot watch is skipped without raising."""
        registry = WatcherRegistry(transport=transport)
        missing = tmp_path / "missing"

        assert registry.create(missing, FULL_SYNC) is None
        assert not registry.is_active(missing)
        assert registry.active_roots == []

        missing.mkdir()
        watcher = registry.create(missing, FULL_SYNC)
        try:
            assert watcher is not None
            assert watcher.is_running
        finally:
            await registry.aclose()

    @pytest.mark.asyncio
    async def test_interval_below_minimum_rejected(self, transport):
        """Test that the registry refuses a short quiet period."""
        with pytest.raises(ValueError):
            WatcherRegistry(transport=transport, interval_ms=100)


class TestWatcherRegistryEvents:
    """Test event flow from watchdog events to transfers."""

    @pytest.mark.asyncio
    async def test_created_then_modified_uploads_once_after_quiet_period(
        self, registry, transport, observer_factory
    ):
        """Test created + modified within 100ms on one file."""
        _, created = observer_factory
        registry.create("/proj", UPLOAD_ONLY)
        handler = created[0].handler

        handler.on_created(FileCreatedEvent("/proj/x.txt"))
        await settle()
        # Leading edge
        assert transport.uploads == [Path("/proj/x.txt")]

        await asyncio.sleep(0.05)
        handler.on_modified(FileModifiedEvent("/proj/x.txt"))
        await settle()
        assert transport.uploads == [Path("/proj/x.txt")]
        assert registry.scheduler(ActionKind.UPLOAD).pending

        await asyncio.sleep(0.7)
        await settle()
        assert transport.uploads == [Path("/proj/x.txt"), Path("/proj/x.txt")]

        await asyncio.sleep(0.7)
        assert len(transport.uploads) == 2

    @pytest.mark.asyncio
    async def test_burst_deduplicates_paths(self, registry, transport, observer_factory):
        """Test that repeated events within a window yield one upload per path."""
        _, created = observer_factory
        registry.create("/proj", UPLOAD_ONLY)
        handler = created[0].handler

        handler.on_created(FileCreatedEvent("/proj/first.txt"))
        await settle()
        for _ in range(5):
            handler.on_modified(FileModifiedEvent("/proj/a.txt"))
            handler.on_modified(FileModifiedEvent("/proj/sub/b.txt"))
        await settle()

        await asyncio.sleep(0.7)
        await settle()

        assert transport.uploads == [
            Path("/proj/first.txt"),
            Path("/proj/sub/b.txt"),
            Path("/proj/a.txt"),
        ]

    @pytest.mark.asyncio
    async def test_deletes_use_delete_pipeline(self, registry, transport, status_sink, observer_factory):
        """Test that deletions reach remove and report success."""
        _, created = observer_factory
        registry.create("/proj", FULL_SYNC)

        created[0].handler.on_deleted(FileDeletedEvent("/proj/gone.txt"))
        await settle()

        assert transport.removals == [Path("/proj/gone.txt")]
        assert transport.uploads == []
        assert status_sink.messages[0][0] == "removed gone.txt"

    @pytest.mark.asyncio
    async def test_upload_only_ignores_deletes(self, registry, transport, observer_factory):
        """Test that auto_delete off drops deletion events."""
        _, created = observer_factory
        registry.create("/proj", UPLOAD_ONLY)

        created[0].handler.on_deleted(FileDeletedEvent("/proj/gone.txt"))
        await settle()

        assert transport.calls == []
        assert not registry.pending(ActionKind.DELETE)

    @pytest.mark.asyncio
    async def test_classifier_rejections_are_silent(self, registry, transport, observer_factory):
        """Test that invalid paths never reach a pending set."""
        _, created = observer_factory
        registry.create("/proj", UPLOAD_ONLY)

        created[0].handler.on_created(FileCreatedEvent("/proj/.git/index"))
        await settle()

        assert transport.calls == []
        assert not registry.scheduler(ActionKind.UPLOAD).active

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_later_batches(self, status_sink, observer_factory):
        """Test that a failed item is dropped and later events still sync."""
        factory, created = observer_factory
        transport = RecordingTransport(failing={"/proj/bad.txt"})
        registry = WatcherRegistry(
            transport=transport,
            classifier=IgnorePatternClassifier([]),
            status=status_sink,
            observer_factory=factory,
        )
        registry.create("/proj", UPLOAD_ONLY)
        handler = created[0].handler

        handler.on_created(FileCreatedEvent("/proj/bad.txt"))
        await settle()
        await asyncio.sleep(0.6)

        handler.on_created(FileCreatedEvent("/proj/good.txt"))
        await settle()

        assert transport.uploads == [Path("/proj/bad.txt"), Path("/proj/good.txt")]
        assert [m[0] for m in status_sink.messages] == ["fail", "uploaded good.txt"]

    @pytest.mark.asyncio
    async def test_aclose_flushes_trailing_batch(self, registry, transport, observer_factory):
        """Test that shutdown sends paths still waiting on the quiet period."""
        _, created = observer_factory
        registry.create("/proj", FULL_SYNC)
        handler = created[0].handler

        handler.on_created(FileCreatedEvent("/proj/a.txt"))
        await settle()
        handler.on_modified(FileModifiedEvent("/proj/b.txt"))
        await settle()

        await registry.aclose()

        assert transport.uploads == [Path("/proj/a.txt"), Path("/proj/b.txt")]
        assert registry.active_roots == []
        assert created[0].stopped
        assert registry.dispatcher(ActionKind.UPLOAD).in_flight == 0

    @pytest.mark.asyncio
    async def test_dispose_does_not_cancel_in_flight(self, registry, transport, observer_factory):
        """Test that transfers already issued finish after dispose."""
        _, created = observer_factory
        transport.gate = asyncio.Event()
        registry.create("/proj", UPLOAD_ONLY)

        created[0].handler.on_created(FileCreatedEvent("/proj/a.txt"))
        await settle()
        registry.dispose("/proj")

        assert registry.dispatcher(ActionKind.UPLOAD).in_flight == 1
        transport.gate.set()
        await registry.dispatcher(ActionKind.UPLOAD).wait_idle()
        assert registry.dispatcher(ActionKind.UPLOAD).in_flight == 0
