"""
Synchronous HTTP client for the VibeTune API.

Uses ``httpx.Client`` (sync) so scripts and the status poller can call the
service without an event loop.
"""

import logging

import httpx

logger = logging.getLogger(__name__)


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "connection", "timeout", "http", "network", "unknown".
    ``status_code`` is set for "http" errors.
    """

    def __init__(self, message: str, category: str = "unknown", status_code: int | None = None) -> None:
        self.message = message
        self.category = category
        self.status_code = status_code
        super().__init__(message)


class VibeTuneClient:
    """Thin synchronous wrapper around httpx for calling the VibeTune API.

    All methods return parsed JSON (or raw bytes for audio) or raise
    ``APIError``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL of the VibeTune server.
            api_key: Bearer token sent when the server enforces one.
            timeout: Default request timeout in seconds.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        self._base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        self._client = httpx.Client(
            base_url=self._base_url, timeout=timeout, headers=headers, transport=transport
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "VibeTuneClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with user-friendly error handling.

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "VibeTune server is not running. "
                "Start it with: `uvicorn vibetune.api.app:app --port 8000`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "Request timed out. Music generation can take several minutes.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                body = exc.response.json()
                detail = body.get("error") or body.get("detail") or exc.response.text
            except ValueError:
                detail = exc.response.text or str(exc)
            raise APIError(str(detail), category="http", status_code=exc.response.status_code) from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    # -- health --

    def health_check(self) -> dict:
        return self._request("GET", "/health").json()

    def check_connection(self) -> tuple[bool, str]:
        """Check if the server is reachable. Returns (ok, message)."""
        try:
            self.health_check()
            return True, "Connected"
        except APIError as exc:
            return False, exc.message

    # -- songs --

    def create_song(
        self,
        title: str,
        user_id: str,
        description: str | None = None,
        parameters: dict | None = None,
    ) -> dict:
        body: dict = {"title": title, "user_id": user_id}
        if description:
            body["description"] = description
        if parameters:
            body["parameters"] = parameters
        return self._request("POST", "/api/song", json=body).json()

    def list_songs(
        self,
        user_id: str | None = None,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict]:
        params: dict = {"limit": limit, "offset": offset}
        if user_id:
            params["user_id"] = user_id
        if status:
            params["status"] = status
        return self._request("GET", "/api/song", params=params).json()

    def get_song(self, song_id: str) -> dict:
        return self._request("GET", f"/api/song/{song_id}").json()

    def update_song_status(
        self,
        song_id: str,
        status: str | None = None,
        file_url: str | None = None,
    ) -> dict:
        body: dict = {"id": song_id}
        if status:
            body["status"] = status
        if file_url:
            body["file_url"] = file_url
        return self._request("PUT", "/api/song", json=body).json()

    def update_song(self, song_id: str, title: str, description: str | None = None) -> dict:
        return self._request(
            "PUT", f"/api/song/{song_id}", json={"title": title, "description": description}
        ).json()

    def delete_song(self, song_id: str) -> dict:
        return self._request("DELETE", f"/api/song/{song_id}").json()

    # -- generation --

    def generate(self, prompt: str, negative_tags: str | None = None) -> tuple[bytes, dict]:
        """Generate a song. Returns the WAV bytes and its audio metadata."""
        body: dict = {"prompt": prompt}
        if negative_tags:
            body["negativeTags"] = negative_tags
        resp = self._request("POST", "/api/generate", json=body, timeout=300.0)
        meta = {
            "duration": float(resp.headers.get("x-audio-duration", 0)),
            "sample_rate": int(resp.headers.get("x-audio-sample-rate", 0)),
            "channels": int(resp.headers.get("x-audio-channels", 0)),
        }
        return resp.content, meta

    def create_prompt(
        self,
        video: bytes,
        user_text: str | None = None,
        mime_type: str = "video/webm",
        simplify: bool = False,
    ) -> dict:
        data: dict = {"simplify": str(simplify).lower()}
        if user_text:
            data["userText"] = user_text
        files = {"video": ("recording.webm", video, mime_type)}
        return self._request("POST", "/api/prompt", data=data, files=files, timeout=120.0).json()

    def submit_video(
        self,
        video: bytes,
        user_id: str,
        description: str | None = None,
        mime_type: str = "video/webm",
    ) -> dict:
        data: dict = {"user_id": user_id}
        if description:
            data["description"] = description
        files = {"video": ("recording.webm", video, mime_type)}
        return self._request("POST", "/api/submit", data=data, files=files, timeout=120.0).json()

    def upload_audio(self, song_id: str, audio: bytes) -> dict:
        files = {"audio": (f"{song_id}.wav", audio, "audio/wav")}
        return self._request("POST", "/api/upload", data={"songId": song_id}, files=files).json()

    def download(self, url: str) -> bytes:
        """Fetch a stored object by its public URL (absolute or server-relative)."""
        return self._request("GET", url).content
