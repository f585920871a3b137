"""Disposable browser sessions, one per confirmation attempt.

Every session gets its own Chromium profile directory under the storage root
(named ``<prefix><random>``). ``SessionRegistry`` counts live sessions so the
hourly sweep never deletes a profile that is still in use.
"""

from __future__ import annotations

import shutil
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator, Tuple

from loguru import logger
from playwright.sync_api import sync_playwright

from ..errors import ResourceError

PROFILE_PREFIX = "household-profile-"
SWEEP_INTERVAL_SEC = 3600.0

Closer = Callable[[], None]
Launcher = Callable[[Path, bool], Tuple[Any, Closer]]


class SessionRegistry:
    """Thread-safe counter of live sessions.

    ``guard`` serialises profile-dir creation against the sweep: acquire holds
    it while counting itself in and creating its directory, the sweep holds it
    for the whole check-and-remove pass.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active = 0
        self.guard = threading.RLock()

    def increment(self) -> int:
        with self._lock:
            self._active += 1
            return self._active

    def decrement(self) -> int:
        with self._lock:
            self._active = max(0, self._active - 1)
            return self._active

    @property
    def active(self) -> int:
        with self._lock:
            return self._active


@dataclass
class Session:
    id: str
    storage: Path
    trace_id: str = ""
    page: Any = None
    closer: Closer | None = field(default=None, repr=False)
    released: bool = False


def launch_chromium(user_data_dir: Path, headless: bool = True) -> Tuple[Any, Closer]:
    """Start Playwright and a persistent Chromium context backed by ``user_data_dir``.

    Returns the page to drive and a closer that tears down context and driver.
    """
    playwright = sync_playwright().start()
    try:
        context = playwright.chromium.launch_persistent_context(
            str(user_data_dir),
            headless=headless,
            args=["--no-sandbox"],
        )
    except Exception:
        playwright.stop()
        raise

    def _close() -> None:
        try:
            context.close()
        finally:
            playwright.stop()

    try:
        page = context.pages[0] if context.pages else context.new_page()
    except Exception:
        _close()
        raise
    return page, _close


class SessionManager:
    def __init__(
        self,
        registry: SessionRegistry,
        launcher: Launcher = launch_chromium,
        storage_root: str | Path | None = None,
        prefix: str = PROFILE_PREFIX,
        headless: bool = True,
    ) -> None:
        self.registry = registry
        self.launcher = launcher
        self.storage_root = Path(storage_root) if storage_root else Path(tempfile.gettempdir())
        self.prefix = prefix
        self.headless = headless

    def acquire(self, trace_id: str = "") -> Session:
        log = logger.bind(trace_id=trace_id or "-")
        with self.registry.guard:
            # Counted before the dir exists so a sweep can never see it orphaned
            self.registry.increment()
            try:
                self.storage_root.mkdir(parents=True, exist_ok=True)
                storage = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.storage_root))
            except OSError as exc:
                self.registry.decrement()
                log.error(f"[session] Failed to create profile dir under {self.storage_root}: {exc}")
                raise ResourceError(f"cannot create profile dir: {exc}") from exc

        session = Session(id=storage.name, storage=storage, trace_id=trace_id)
        try:
            session.page, session.closer = self.launcher(storage, self.headless)
        except Exception as exc:
            log.error(f"[session] Browser launch failed: {exc}")
            self.release(session)
            raise ResourceError(f"cannot launch browser: {exc}") from exc

        log.debug(f"[session] Acquired {session.id} (active={self.registry.active})")
        return session

    def release(self, session: Session) -> None:
        if session.released:
            return
        session.released = True
        log = logger.bind(trace_id=session.trace_id or "-")

        if session.closer is not None:
            try:
                session.closer()
            except Exception as exc:
                log.warning(f"[session] Failed to close browser for {session.id}: {exc}")
        try:
            shutil.rmtree(session.storage)
        except OSError as exc:
            log.warning(f"[session] Failed to remove profile dir {session.storage}: {exc}")

        active = self.registry.decrement()
        log.debug(f"[session] Released {session.id} (active={active})")

    @contextmanager
    def session(self, trace_id: str = "") -> Iterator[Session]:
        sess = self.acquire(trace_id)
        try:
            yield sess
        finally:
            self.release(sess)

    def sweep(self) -> int:
        """Remove orphaned profile dirs. Does nothing while any session is live."""
        with self.registry.guard:
            active = self.registry.active
            if active > 0:
                logger.info(f"[sweep] Skipping profile cleanup: {active} active session(s)")
                return 0

            removed = 0
            for path in sorted(self.storage_root.glob(f"{self.prefix}*")):
                if not path.is_dir():
                    continue
                try:
                    shutil.rmtree(path)
                except OSError as exc:
                    logger.warning(f"[sweep] Failed to remove {path}: {exc}")
                    continue
                removed += 1
                logger.info(f"[sweep] Cleaned up {path}")
            return removed

    def start_sweeper(
        self,
        interval_sec: float = SWEEP_INTERVAL_SEC,
        stop_event: threading.Event | None = None,
    ) -> threading.Thread:
        stop = stop_event or threading.Event()

        def _loop() -> None:
            while not stop.wait(interval_sec):
                try:
                    self.sweep()
                except Exception:
                    logger.exception("[sweep] Unexpected error during profile cleanup")

        thread = threading.Thread(target=_loop, name="profile-sweeper", daemon=True)
        thread.start()
        return thread
