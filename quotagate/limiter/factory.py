"""Factory for the window store, admission controller and sweeper singletons."""

from quotagate.config.settings import get_settings
from quotagate.limiter.controller import AdmissionController
from quotagate.limiter.store import MemoryWindowStore, WindowStore
from quotagate.limiter.sweeper import WindowSweeper

_store: WindowStore | None = None
_controller: AdmissionController | None = None
_sweeper: WindowSweeper | None = None


def get_window_store() -> WindowStore:
    """Get the window store singleton for the configured backend."""
    global _store
    if _store is not None:
        return _store

    settings = get_settings()
    backend = settings.rate_limit_store_backend

    if backend == "memory":
        _store = MemoryWindowStore()
        return _store

    if backend == "dynamodb":
        # Lazy import to avoid boto3 dependency when not needed
        from quotagate.limiter.dynamodb_store import DynamoDBWindowStore
        _store = DynamoDBWindowStore(
            table_name=settings.dynamodb_table_name,
            region=settings.aws_region,
            ttl_seconds=settings.sweep_retention_seconds,
        )
        return _store

    raise ValueError(f"Unknown rate limit store backend: {backend}")


def get_controller() -> AdmissionController:
    global _controller
    if _controller is None:
        settings = get_settings()
        _controller = AdmissionController(
            store=get_window_store(),
            failure_mode=settings.rate_limit_failure_mode,
            max_cas_attempts=settings.rate_limit_max_cas_attempts,
        )
    return _controller


def get_sweeper() -> WindowSweeper:
    global _sweeper
    if _sweeper is None:
        settings = get_settings()
        _sweeper = WindowSweeper(
            controller=get_controller(),
            interval_seconds=settings.rate_limit_sweep_interval_seconds,
            retention_seconds=settings.sweep_retention_seconds,
        )
    return _sweeper


async def close_limiter() -> None:
    """Stop the sweeper, release the store and drop all singletons."""
    global _store, _controller, _sweeper
    if _sweeper is not None:
        await _sweeper.stop()
    if _store is not None:
        await _store.close()
    _store = None
    _controller = None
    _sweeper = None
