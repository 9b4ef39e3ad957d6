"""
Client sync loop.

Polls a room's snapshot on a fixed interval and replaces the local view with it
on every poll. Polls are serialized so snapshots are applied in the order they
were requested, and every API call is spaced one rate-limit window after the
previous one so the server's per-client throttle never rejects the session.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from chatroom.client.api import RoomApiClient, RoomApiError
from chatroom.client.e2e import RoomCipher, is_encrypted
from chatroom.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

POLL_RATE_MS = 2000
RATE_LIMIT_WINDOW_MS = 1000
MAX_PLAINTEXT_LENGTH = 1000
MAX_SYSTEM_MESSAGES = 50
CLEANUP_SUGGEST_AFTER_MS = 10 * 60 * 1000
DECRYPTION_FAILED_PLACEHOLDER = "[decryption failed]"
WELCOME_MESSAGE = "Welcome to the chat room! There is no message history yet."


@dataclass
class ViewMessage:
    username: str
    message: str
    timestamp: int
    decrypt_failed: bool = False


@dataclass
class RoomView:
    room_id: str
    users: List[str] = field(default_factory=list)
    messages: List[ViewMessage] = field(default_factory=list)
    joined: bool = False
    username: Optional[str] = None
    last_activity: int = 0
    notice: Optional[str] = None
    # Join/leave announcements and the welcome line; consumers drain it after rendering.
    system_messages: List[str] = field(default_factory=list)


class RoomSession:
    """One client's connection to one room."""

    def __init__(
        self,
        api: RoomApiClient,
        room_id: str,
        *,
        passphrase: Optional[str] = None,
        cipher: Optional[RoomCipher] = None,
        poll_interval_ms: int = POLL_RATE_MS,
        min_request_interval_ms: int = RATE_LIMIT_WINDOW_MS,
        on_update: Optional[Callable[[RoomView], None]] = None,
        clock: Clock = now_ms,
    ):
        self.api = api
        self.view = RoomView(room_id=room_id)
        self.cipher = cipher or (RoomCipher(passphrase, room_id) if passphrase else None)
        self.poll_interval_ms = poll_interval_ms
        self.min_request_interval_ms = min_request_interval_ms
        self.on_update = on_update
        self.clock = clock
        self._poll_lock = asyncio.Lock()
        self._pace_lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None
        self._roster_known = False
        self._task: Optional[asyncio.Task] = None

    @property
    def room_id(self) -> str:
        return self.view.room_id

    @property
    def polling(self) -> bool:
        return self._task is not None and not self._task.done()

    # --- request pacing ---

    async def _wait_for_window(self) -> None:
        if self._last_request_at is None or self.min_request_interval_ms <= 0:
            return
        delay = self._last_request_at + self.min_request_interval_ms / 1000 - time.monotonic()
        if delay > 0:
            await asyncio.sleep(delay)

    async def _call(
        self, request: Callable[..., Awaitable[Dict[str, Any]]], *args: Any, **kwargs: Any
    ) -> Dict[str, Any]:
        """
        Issue one API call at least one rate-limit window after the previous one.

        A 429 is retried once after another window; any other error is raised.
        """
        async with self._pace_lock:
            retried = False
            while True:
                await self._wait_for_window()
                try:
                    return await request(*args, **kwargs)
                except RoomApiError as e:
                    if e.status_code != 429 or retried:
                        raise
                    retried = True
                    logger.info("Rate limited in room %r, retrying after one window", self.room_id)
                finally:
                    self._last_request_at = time.monotonic()

    # --- polling ---

    async def enter_room(self) -> None:
        """Fetch the room once, then keep polling. Works before (or without) joining."""
        await self.poll_once()
        self.start()

    def start(self) -> None:
        if not self.polling:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval_ms / 1000)
            await self.poll_once()

    async def poll_once(self) -> bool:
        """Fetch one snapshot and apply it. Returns False if the fetch failed."""
        async with self._poll_lock:
            user = self.view.username if self.view.joined else None
            try:
                snapshot = await self._call(self.api.fetch_messages, self.room_id, user=user)
            except RoomApiError as e:
                # Keep the last good view; the next tick retries.
                logger.warning("Poll failed for room %r: %s", self.room_id, e)
                return False
            self._apply(snapshot)
        self._notify()
        return True

    def _apply(self, snapshot: Dict[str, Any]) -> None:
        messages: List[ViewMessage] = []
        for raw in snapshot.get("messages") or []:
            body = raw.get("message", "")
            timestamp = int(raw.get("timestamp") or 0)
            failed = False
            if is_encrypted(body):
                text = self.cipher.decrypt(body) if self.cipher else None
                if text is None:
                    text, failed = DECRYPTION_FAILED_PLACEHOLDER, True
                body = text
            messages.append(ViewMessage(raw.get("username", ""), body, timestamp, decrypt_failed=failed))
            self.view.last_activity = max(self.view.last_activity, timestamp)
        users = list(snapshot.get("users") or [])

        if self._roster_known:
            self._announce_roster_changes(self.view.users, users)
        elif not messages:
            self._add_system_message(WELCOME_MESSAGE)
        self._roster_known = True

        self.view.messages = messages
        self.view.users = users

    def _announce_roster_changes(self, before: List[str], after: List[str]) -> None:
        previous, current = set(before), set(after)
        for name in sorted(current - previous):
            if name != self.view.username:
                self._add_system_message(f"User {name} joined the room.")
        for name in sorted(previous - current):
            self._add_system_message(f"User {name} left the room.")

    def _add_system_message(self, text: str) -> None:
        self.view.system_messages.append(text)
        del self.view.system_messages[:-MAX_SYSTEM_MESSAGES]

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.view)

    # --- actions ---

    async def join(self, username: str) -> bool:
        username = (username or "").strip()
        if not username:
            self.view.notice = "Enter a username"
            return False
        if self.view.joined:
            return True
        try:
            await self._call(self.api.join, self.room_id, username)
        except RoomApiError as e:
            self.view.joined = False
            self.view.username = None
            self.view.notice = "Name taken" if e.status_code == 409 else f"Join failed: {e}"
            logger.info("Join of %r to room %r failed: %s", username, self.room_id, e)
            return False
        self.view.joined = True
        self.view.username = username
        self.view.notice = None
        await self.poll_once()
        return True

    async def send(self, text: str) -> bool:
        """Send a message. On failure the view is left as it was and the caller keeps its input."""
        if not self.view.joined:
            self.view.notice = "Join the room before sending"
            return False
        text = (text or "").strip()
        if not text:
            return False
        if len(text) > MAX_PLAINTEXT_LENGTH:
            self.view.notice = f"Message too long (max {MAX_PLAINTEXT_LENGTH} characters)"
            return False
        body = self.cipher.encrypt(text) if self.cipher else text
        try:
            await self._call(self.api.send, self.room_id, self.view.username, body)
        except RoomApiError as e:
            self.view.notice = f"Send failed: {e}"
            return False
        self.view.notice = None
        self.view.last_activity = max(self.view.last_activity, self.clock())
        await self.poll_once()
        return True

    async def destroy(self) -> bool:
        try:
            await self._call(self.api.destroy, self.room_id)
        except RoomApiError as e:
            self.view.notice = f"Destroy failed: {e}"
            return False
        self.view.messages = []
        self.view.users = []
        self.view.joined = False
        self.view.username = None
        self.view.notice = "Room destroyed"
        self._roster_known = False
        self._notify()
        return True

    def should_suggest_cleanup(self, idle_ms: int = CLEANUP_SUGGEST_AFTER_MS) -> bool:
        """Advisory: the room has been quiet long enough to suggest destroying it."""
        return self.view.last_activity > 0 and self.clock() - self.view.last_activity >= idle_ms
