"""
Status poller: re-fetch a user's songs while any is still ``processing``.

Fixed interval, no backoff or jitter; polling ends once no song is
``processing`` (or after ``max_polls`` fetches when a cap is given). When the
fetched page is full, a ``status=processing`` query decides whether older
songs are still pending.
"""

import logging
import time
from collections.abc import Callable

from vibetune.client.api_client import VibeTuneClient

logger = logging.getLogger(__name__)

SongsCallback = Callable[[list[dict]], None]


def has_processing(songs: list[dict]) -> bool:
    return any(song.get("status") == "processing" for song in songs)


class StatusPoller:
    """Poll ``GET /api/song`` for one user.

    Args:
        client: API client used for fetching.
        user_id: Owner whose songs are polled.
        interval: Seconds between fetches.
        on_update: Called with every fetched list.
        max_polls: Optional cap on the number of fetches.
        page_size: Songs fetched per poll.
        sleep: Sleep function (patched in tests).
    """

    def __init__(
        self,
        client: VibeTuneClient,
        user_id: str,
        interval: float = 5.0,
        on_update: SongsCallback | None = None,
        max_polls: int | None = None,
        page_size: int = 50,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._user_id = user_id
        self._interval = interval
        self._on_update = on_update
        self._max_polls = max_polls
        self._page_size = page_size
        self._sleep = sleep
        self.polls = 0

    def fetch(self) -> list[dict]:
        songs = self._client.list_songs(user_id=self._user_id, limit=self._page_size)
        self.polls += 1
        if self._on_update is not None:
            self._on_update(songs)
        return songs

    def pending(self, songs: list[dict]) -> bool:
        """Whether any of the user's songs is still ``processing``."""
        if has_processing(songs):
            return True
        if len(songs) < self._page_size:
            return False
        # Page is full: older songs may be outside it
        return bool(self._client.list_songs(user_id=self._user_id, status="processing", limit=1))

    def run(self) -> list[dict]:
        """Fetch until nothing is ``processing``; return the last list."""
        songs = self.fetch()
        while self.pending(songs):
            if self._max_polls is not None and self.polls >= self._max_polls:
                logger.info("Stopping poll for %s after %d fetches", self._user_id, self.polls)
                break
            self._sleep(self._interval)
            songs = self.fetch()
        return songs
