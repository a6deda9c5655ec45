"""
Orchestration between the presentation layer, the pure scoreboard functions and the store.

One SyncController is one game session in one client. It holds the current GameState, applies scorekeeper
actions optimistically, pushes them to the store, and keeps a spectator in step with the store through a
periodic pull plus the store's change notifications. Everything runs on a single asyncio event loop; blocking
store calls are pushed to worker threads and bounded by a timeout.
"""

import asyncio
import logging
from dataclasses import replace
from types import TracebackType
from typing import Any, Awaitable, Callable, Optional, Self

from src.api.models import ScoreboardView
from src.core.config import Settings
from src.core.exceptions import (
    ReadOnlyRoleError,
    RepositoryError,
    ScoreboardError,
    StoreUnavailableError,
)
from src.core.models import GameState, Millis, PenaltyId
from src.core.shared_types import Role, SyncStatus, Team
from src.core.time_source import SystemTimeSource, TimeSource
from src.db.repository import GameStateStore, Subscription
from src.scoreboard import clock, game, penalties
from src.scoreboard.display import build_view

logger = logging.getLogger(__name__)

ViewListener = Callable[[ScoreboardView], None]
Transform = Callable[[GameState, Millis], GameState]


class SyncController:
    """Single owner of the GameState for one game in one client."""

    def __init__(
        self,
        store: GameStateStore,
        game_id: str,
        role: Role,
        settings: Settings,
        time_source: Optional[TimeSource] = None,
        on_change: Optional[ViewListener] = None,
    ) -> None:
        self.store = store
        self.game_id = game_id
        self.role = role
        self.settings = settings
        self.time_source = time_source or SystemTimeSource()
        self.on_change = on_change

        self.status = SyncStatus.UNINITIALIZED
        # Fallback until the store answers. Timestamp 0 so that any stored record wins.
        self.state: GameState = game.new_game(settings.default_clock_seconds, 0)
        self.is_stale = False
        self.last_error: Optional[str] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._store_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []
        self._writes: set[asyncio.Task[None]] = set()
        self._subscription: Optional[Subscription] = None
        self._pending_push = False
        # Newest last_updated known to be in the store. Writes older than this are dropped.
        self._stored_stamp: Millis = 0
        self._closed = False

    # --- LIFECYCLE ---
    async def __aenter__(self) -> Self:
        await self.mount()
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.stop()

    @property
    def is_scorekeeper(self) -> bool:
        return self.role == Role.SCOREKEEPER

    @property
    def closed(self) -> bool:
        return self._closed

    async def mount(self) -> None:
        """Load the record for this game (creating it when absent) and subscribe to its changes."""
        if self.status != SyncStatus.UNINITIALIZED:
            raise ScoreboardError(f"Session for game {self.game_id} is already mounted.")
        self._loop = asyncio.get_running_loop()
        self.status = SyncStatus.LOADING
        logger.info("Loading game %s as %s", self.game_id, self.role)

        try:
            stored = await self._call(self.store.get, self.game_id)
            if stored is None and not self._closed:
                stored = await self._create_default()
        except (StoreUnavailableError, RepositoryError) as e:
            self._mark_failure(e)
            logger.warning("Could not load game %s, continuing with local state: %s", self.game_id, e)
        else:
            if stored is not None and not self._closed:
                self.state = stored
                self._stored_stamp = max(self._stored_stamp, stored.last_updated)
                self._mark_success()

        # stop() may have run while the store was answering
        if self._closed:
            return
        self._subscribe()
        self._emit()

    def start(self) -> None:
        """Spawn the recurring tasks: display/maintenance tick and remote pull."""
        if self._closed:
            raise ScoreboardError("Cannot start a session that was torn down.")
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._run_every(self.settings.tick_seconds, self.tick, "tick")),
            asyncio.create_task(self._run_every(self.settings.pull_seconds, self.pull, "pull")),
        ]

    async def stop(self) -> None:
        """
        Tear down: cancel the recurring tasks and the subscription. Writes already in flight may finish, but
        nothing they return touches the state any more.
        """
        if self._closed:
            return
        self._closed = True
        self._stop_event.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        if self._subscription is not None:
            try:
                self._subscription.cancel()
            except Exception:
                logger.exception("Failed to cancel subscription for game %s", self.game_id)
            self._subscription = None

        await self.flush()
        logger.info("Session for game %s stopped", self.game_id)

    async def flush(self) -> None:
        """Wait for background writes started by the maintenance tick."""
        if self._writes:
            await asyncio.gather(*self._writes, return_exceptions=True)

    # --- PERIODIC STEPS ---
    async def tick(self) -> None:
        """
        Display refresh. The scorekeeper also runs the maintenance step (auto-stop, penalty expiry) and pushes
        the result only when it changed something, or when an earlier push is still owed to the store.
        """
        if self._closed:
            return
        now = self.time_source.now()
        if self.is_scorekeeper:
            maintained = game.maintain(self.state, now)
            if maintained is not self.state:
                self.state = self._stamp(maintained, now)
                self._pending_push = True
            if self._pending_push:
                self._push_in_background()
        self._emit(now)

    async def pull(self) -> bool:
        """Fetch the stored record and adopt it if it is newer. Returns True when local state was replaced."""
        if self._closed:
            return False
        try:
            incoming = await self._call(self.store.get, self.game_id)
        except (StoreUnavailableError, RepositoryError) as e:
            self._mark_failure(e)
            logger.warning("Pull failed for game %s: %s", self.game_id, e)
            return False
        if self._closed:
            return False

        self._mark_success()
        if self._subscription is None:
            self._subscribe()
        if incoming is None:
            if self.is_scorekeeper:
                # Record vanished (or was never created while the store was down)
                self._pending_push = True
            return False
        return self._adopt(incoming)

    # --- SCOREKEEPER ACTIONS ---
    async def add_score(self, team: Team, delta: int = 1) -> GameState:
        return await self._apply(lambda s, now: game.adjust_score(s, team, delta, now))

    async def set_score(self, team: Team, score: int) -> GameState:
        return await self._apply(lambda s, now: game.set_score(s, team, score, now))

    async def change_period(self, delta: int = 1) -> GameState:
        return await self._apply(lambda s, now: game.adjust_period(s, delta, now))

    async def set_period(self, period: int) -> GameState:
        return await self._apply(lambda s, now: game.set_period(s, period, now))

    async def start_clock(self) -> GameState:
        return await self._apply(clock.start)

    async def pause_clock(self) -> GameState:
        return await self._apply(clock.pause)

    async def reset_clock(self) -> GameState:
        default = self.settings.default_clock_seconds
        return await self._apply(lambda s, now: clock.reset(s, default, now))

    async def set_clock(self, minutes: int, seconds: int) -> GameState:
        return await self._apply(lambda s, now: clock.set_absolute(s, minutes, seconds, now))

    async def add_penalty(self, team: Team, player_number: str, minutes: int, seconds: int) -> GameState:
        return await self._apply(
            lambda s, now: penalties.add(s, team, player_number, minutes, seconds, now)
        )

    async def remove_penalty(self, penalty_id: PenaltyId) -> GameState:
        return await self._apply(lambda s, now: penalties.remove(s, penalty_id, now))

    async def reset_game(self) -> GameState:
        default = self.settings.default_clock_seconds
        return await self._apply(lambda s, now: game.reset_game(s, default, now))

    # --- VIEW ---
    def view(self, now: Optional[Millis] = None) -> ScoreboardView:
        now = self.time_source.now() if now is None else now
        view = build_view(self.state, now, debug=self.settings.debug)
        return view.model_copy(update={"stale": self.is_stale})

    def remaining_clock(self) -> int:
        return clock.derive_remaining(self.state, self.time_source.now())

    # --- INTERNAL HELPERS ---
    async def _apply(self, transform: Transform) -> GameState:
        """
        Apply a user action locally, then push it.

        ValidationError leaves the state untouched. A failed push keeps the local change and raises
        StoreUnavailableError so the scorekeeper can be told.
        """
        if not self.is_scorekeeper:
            raise ReadOnlyRoleError("Spectators cannot change the game.")
        if self._closed:
            raise ScoreboardError("Session is closed.")

        now = self.time_source.now()
        new_state = transform(self.state, now)
        if new_state is self.state:
            return self.state
        self.state = self._stamp(new_state, now)
        self._emit(now)

        try:
            await self._push(self.state)
        except StoreUnavailableError as e:
            self.last_error = f"Change kept locally but not saved: {e}"
            raise
        return self.state

    def _stamp(self, state: GameState, now: Millis) -> GameState:
        """Every local change must be newer than anything adopted so far, even if this client's clock lags."""
        stamp = max(now, self.state.last_updated + 1)
        if state.last_updated == stamp:
            return state
        return replace(state, last_updated=stamp)

    async def _push(self, state: GameState) -> None:
        try:
            written = await self._call(self._write, state)
        except (StoreUnavailableError, RepositoryError) as e:
            self._pending_push = True
            self._mark_failure(e)
            raise StoreUnavailableError(str(e)) from e
        if not written:
            logger.debug(
                "Skipped write of game %s at %s, store already holds %s",
                self.game_id,
                state.last_updated,
                self._stored_stamp,
            )
        if not self._closed:
            if state is self.state:
                self._pending_push = False
            self._mark_success()

    def _write(self, state: GameState) -> bool:
        """Upsert on a worker thread, holding the store lock. Returns False for a write older than the store."""
        if state.last_updated < self._stored_stamp:
            return False
        if self.store.update(self.game_id, state) is None:
            self.store.create(self.game_id, state)
        self._stored_stamp = state.last_updated
        return True

    def _push_in_background(self) -> None:
        """Fire-and-forget write from the maintenance tick. At most one in flight."""
        if self._writes:
            return
        task = asyncio.create_task(self._background_push())
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)

    async def _background_push(self) -> None:
        # An action may have run between the tick and this task starting
        try:
            await self._push(self.state)
        except StoreUnavailableError as e:
            logger.warning("Background push failed for game %s: %s", self.game_id, e)

    async def _create_default(self) -> GameState:
        initial = game.new_game(self.settings.default_clock_seconds, self.time_source.now())
        try:
            return await self._call(self.store.create, self.game_id, initial)
        except RepositoryError:
            # Someone else created it first
            stored = await self._call(self.store.get, self.game_id)
            if stored is None:
                raise
            return stored

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking store call off the loop, one at a time, and give up after the configured timeout."""
        try:
            return await asyncio.wait_for(
                self._locked_call(fn, *args), timeout=self.settings.store_timeout_seconds
            )
        except asyncio.TimeoutError as e:
            raise StoreUnavailableError(
                f"Store did not answer within {self.settings.store_timeout_seconds}s"
            ) from e
        except (StoreUnavailableError, RepositoryError):
            raise
        except Exception as e:
            raise StoreUnavailableError(f"{type(e).__name__}: {e}") from e

    async def _locked_call(self, fn: Callable[..., Any], *args: Any) -> Any:
        """
        The lock is released when the worker thread finishes, not when the caller stops waiting. A call that
        timed out keeps later calls queued behind it until its thread returns.
        """
        await self._store_lock.acquire()
        try:
            work = asyncio.ensure_future(asyncio.to_thread(fn, *args))
        except BaseException:
            self._store_lock.release()
            raise
        work.add_done_callback(self._release_store_lock)
        return await asyncio.shield(work)

    def _release_store_lock(self, work: "asyncio.Future[Any]") -> None:
        self._store_lock.release()
        if not work.cancelled() and work.exception() is not None:
            logger.debug("Store call for game %s finished with %r", self.game_id, work.exception())

    def _subscribe(self) -> None:
        try:
            self._subscription = self.store.subscribe(self.game_id, self._on_store_change)
        except Exception as e:
            logger.warning("Could not subscribe to game %s, relying on polling: %s", self.game_id, e)
            self._subscription = None

    def _on_store_change(self, state: GameState) -> None:
        """Store callback. May run on a worker thread, so hop back onto the event loop first."""
        loop = self._loop
        if loop is None or self._closed:
            return
        try:
            loop.call_soon_threadsafe(self._receive, state)
        except RuntimeError:
            logger.debug("Event loop for game %s is gone, dropping notification", self.game_id)

    def _receive(self, state: GameState) -> None:
        if not self._closed:
            self._adopt(state)

    def _adopt(self, incoming: GameState) -> bool:
        """Last write wins: replace the whole record if, and only if, the incoming one is newer."""
        if incoming.last_updated <= self.state.last_updated:
            return False
        logger.debug(
            "Adopting state for game %s (%s -> %s)",
            self.game_id,
            self.state.last_updated,
            incoming.last_updated,
        )
        self.state = incoming
        self._stored_stamp = max(self._stored_stamp, incoming.last_updated)
        self._emit()
        return True

    def _mark_failure(self, error: Exception) -> None:
        if self._closed:
            return
        self.is_stale = True
        self.last_error = str(error)
        self.status = SyncStatus.ERROR

    def _mark_success(self) -> None:
        if self._closed:
            return
        self.is_stale = False
        self.status = SyncStatus.SYNCED

    def _emit(self, now: Optional[Millis] = None) -> None:
        if self.on_change is None or self._closed:
            return
        try:
            self.on_change(self.view(now))
        except Exception:
            logger.exception("Display listener failed for game %s", self.game_id)

    async def _run_every(
        self, interval: float, step: Callable[[], Awaitable[Any]], name: str
    ) -> None:
        while not self._stop_event.is_set():
            try:
                await step()
            except Exception:
                logger.exception("%s failed for game %s", name, self.game_id)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                continue


def open_session(
    settings: Settings,
    store: GameStateStore,
    game_id: Optional[str] = None,
    role: Optional[Role] = None,
    time_source: Optional[TimeSource] = None,
    on_change: Optional[ViewListener] = None,
) -> SyncController:
    """Build an (unmounted) session from configuration. Role and game id default to the configured ones."""
    return SyncController(
        store=store,
        game_id=game_id or settings.default_game_id,
        role=role or settings.role,
        settings=settings,
        time_source=time_source,
        on_change=on_change,
    )
