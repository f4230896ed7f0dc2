"""Synchronous HTTP client for the Tonie cloud API.

WHY: Managing Creative Tonies is a fixed sequence of REST calls: exchange
credentials for a token, read households and figurines, upload audio to a
pre-signed blob store slot and register it as a chapter, or rewrite a
figurine's chapter list. This module puts all of that behind one client
class so the CLI, the chapter maintenance helpers and tests don't need to
know HTTP details.

HOW: Wraps a single httpx.Client. TonieClient is a context manager: enter
it to open the connection pool, exit to close it. The bearer token and the
selected household live on a Session owned by the client. The upload
workflow is split into its three steps:
create_presigned_file_url → upload_to_slot → register_chapter,
with add_chapter() running them in order.

RULES:
- Always use the context manager (with TonieClient() as client: ...)
- Application API calls send "Authorization: Bearer <token>"; the token
  exchange and the blob store upload do not
- Non-2xx from the application API raises ServiceError
- Nothing is retried; a failed step aborts the workflow and is re-raised
- An uploaded blob whose registration fails is left orphaned
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import httpx

from tonie_cloud.api.errors import (
    AuthenticationFailed,
    DecodeError,
    FileNotFound,
    ServiceError,
    UploadFailed,
)
from tonie_cloud.api.models import (
    AddChapterRequest,
    Chapter,
    CreativeTonie,
    Household,
    UploadSlot,
)
from tonie_cloud.api.session import Session
from tonie_cloud.config import (
    DEFAULT_ORIGIN,
    TONIE_API_BASE_URL,
    TONIE_AUTH_URL,
    TONIE_CLIENT_ID,
    load_credentials,
)
from tonie_cloud.core.prompts import ConsolePrompt, PromptProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors a parser raises when a response has the wrong shape
_SHAPE_ERRORS = (KeyError, TypeError, ValueError, AttributeError)


class TonieClient:
    """Client for the Tonie cloud REST API.

    WHY: Provides a typed interface for the whole lifecycle: login,
    household/figurine reads, the three-step chapter upload and the
    chapter list rewrite used for deletions.

    HOW: Wraps httpx.Client with per-request bearer auth taken from the
    session. Tests inject an httpx.MockTransport via ``transport``.

    RULES:
    - Use as: with TonieClient() as client: ...
    - base_url/auth_url/client_id default to the values in config
    - One Session per client; pass ``session`` to share one explicitly
    """

    def __init__(
        self,
        base_url: str | None = None,
        auth_url: str | None = None,
        client_id: str | None = None,
        session: Session | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or TONIE_API_BASE_URL).rstrip("/")
        self._auth_url = auth_url or TONIE_AUTH_URL
        self._client_id = client_id or TONIE_CLIENT_ID
        self._transport = transport
        self.session = session or Session()
        self._client: httpx.Client | None = None

    def __enter__(self) -> TonieClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(300.0, connect=30.0),
            transport=self._transport,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            self._client.close()
            self._client = None

    def _ensure_client(self) -> httpx.Client:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "TonieClient must be used as a context manager: "
                "with TonieClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> None:
        """Exchange user credentials for a bearer token (OAuth2 password grant).

        WHY: Every application API call needs a bearer token issued by the
        Tonies identity provider.

        HOW: POSTs a form-encoded password grant to the token endpoint and
        stores ``access_token`` from the JSON answer on the session.

        RULES:
        - Any previously stored token is dropped before the exchange
        - Raises AuthenticationFailed on transport errors, non-2xx, a
          non-JSON body or a missing/empty access_token
        """
        client = self._ensure_client()
        self.session.clear_access_token()

        form = {
            "grant_type": "password",
            "client_id": self._client_id,
            "scope": "openid",
            "username": username,
            "password": password,
        }
        try:
            resp = client.post(self._auth_url, data=form)
        except httpx.HTTPError as e:
            raise AuthenticationFailed(f"Token endpoint unreachable: {e}") from e

        if not resp.is_success:
            raise AuthenticationFailed("Authentication failed", resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as e:
            raise AuthenticationFailed(
                "Token response is not JSON", resp.status_code, resp.text
            ) from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthenticationFailed(
                "Token response has no access_token", resp.status_code, resp.text
            )

        self.session.set_access_token(token)
        logger.info("Authentication successful")

    def authenticate_interactive(self, prompt: PromptProvider | None = None) -> None:
        """Ask for username and password, then authenticate."""
        prompt = prompt or ConsolePrompt()
        logger.info("Authentication needed.")
        username = prompt.ask("Username: ")
        password = prompt.ask("Password: ")
        self.authenticate(username, password)

    def login(
        self,
        username: str | None = None,
        password: str | None = None,
        prompt: PromptProvider | None = None,
    ) -> None:
        """Authenticate at startup from the best available credential source.

        Explicit arguments win, then TONIE_USERNAME/TONIE_PASSWORD from the
        environment; whatever is still missing is asked for interactively.
        """
        if username is None and password is None:
            credentials = load_credentials()
            if credentials is not None:
                username, password = credentials

        if username is None or password is None:
            prompt = prompt or ConsolePrompt()
            logger.info("Authentication needed.")
            if username is None:
                username = prompt.ask("Username: ")
            if password is None:
                password = prompt.ask("Password: ")

        self.authenticate(username, password)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def me(self) -> Any:
        """Return the raw profile JSON of the authenticated user."""
        return _json(self._request("GET", "/v2/me"))

    def households(self) -> list[Household]:
        """Return the user's households in the order the service lists them."""
        data = _json(self._request("GET", "/v2/households"))
        return _parse_list(data, Household.from_dict, "households")

    def current_household(self) -> Household:
        return self.session.current_household(self.households)

    def select_household(self, household: Household) -> None:
        self.session.select_household(household)

    def creativetonies(self, household: Household | None = None) -> list[CreativeTonie]:
        """Return the Creative Tonies of ``household`` (default: current household)."""
        if household is None:
            household = self.current_household()
        data = _json(self._request("GET", f"/v2/households/{household.id}/creativetonies"))
        return _parse_list(data, CreativeTonie.from_dict, "creativetonies")

    # ------------------------------------------------------------------
    # Step 1: Acquire upload slot
    # ------------------------------------------------------------------

    def create_presigned_file_url(self) -> UploadSlot:
        """Request a one-time pre-signed upload slot via POST /v2/file."""
        logger.info("Creating pre-signed file url")
        data = _json(self._request("POST", "/v2/file"))
        try:
            return UploadSlot.from_dict(data)
        except _SHAPE_ERRORS as e:
            raise DecodeError(f"Unexpected upload slot payload: {e!r}") from e

    # ------------------------------------------------------------------
    # Step 2: Upload blob
    # ------------------------------------------------------------------

    def upload_to_slot(self, slot: UploadSlot, file_path: str | Path) -> None:
        """Stream a local file to the blob store behind ``slot``.

        WHY: Audio is not sent through the Tonie API; it goes directly to
        the provider's blob store (S3) using the pre-signed form fields.

        HOW: multipart/form-data POST to slot.upload_url with every
        upload_fields entry plus a ``file`` part. httpx writes the plain
        fields before the file part, as S3 requires.

        RULES:
        - No Authorization header is sent to the blob store
        - Raises FileNotFound if the file is missing
        - Raises UploadFailed on transport errors and non-2xx answers
        """
        client = self._ensure_client()
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFound(path)

        logger.info("Uploading file to blob storage. [id=%s]", slot.file_id)
        with open(path, "rb") as f:
            try:
                resp = client.post(
                    slot.upload_url,
                    data=slot.upload_fields,
                    files={"file": (path.name, f)},
                )
            except httpx.HTTPError as e:
                raise UploadFailed(f"Upload to blob storage failed: {e}") from e

        if not resp.is_success:
            raise UploadFailed(
                f"Blob storage rejected the upload (HTTP {resp.status_code})",
                resp.status_code,
                resp.text,
            )

    # ------------------------------------------------------------------
    # Step 3: Register chapter
    # ------------------------------------------------------------------

    def register_chapter(
        self,
        tonie: CreativeTonie,
        file_id: str,
        title: str,
        origin: str = DEFAULT_ORIGIN,
    ) -> None:
        """Attach an uploaded file to ``tonie`` as a new last chapter.

        The service does not answer with the new chapter, so its id is
        only visible through a later creativetonies() read.
        """
        logger.info("Adding uploaded file to chapter list. [id=%s]", file_id)
        payload = AddChapterRequest(title=title, file=file_id, origin=origin)
        self._request(
            "POST",
            f"/v2/households/{tonie.household_id}/creativetonies/{tonie.id}/chapters",
            json=payload.to_dict(),
        )

    def add_chapter(
        self,
        tonie: CreativeTonie,
        file_path: str | Path,
        title: str,
        origin: str = DEFAULT_ORIGIN,
    ) -> None:
        """Upload a local audio file and append it to ``tonie`` as a chapter.

        WHY: This is the only way to put audio on a Creative Tonie.

        HOW: Checks the file, then runs create_presigned_file_url →
        upload_to_slot → register_chapter.

        RULES:
        - FileNotFound is raised before any network call
        - The first failing step aborts the rest; its error is re-raised
        - Not idempotent: calling twice creates two chapters
        """
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFound(path)

        slot = self.create_presigned_file_url()
        self.upload_to_slot(slot, path)
        self.register_chapter(tonie, slot.file_id, title, origin=origin)

    # ------------------------------------------------------------------
    # Chapter list rewrite
    # ------------------------------------------------------------------

    def replace_chapters(
        self,
        household: Household,
        tonie: CreativeTonie,
        chapters: list[Chapter],
    ) -> None:
        """Replace the whole chapter list of ``tonie`` with ``chapters``.

        There is no version check: a concurrent change to the same
        figurine made elsewhere is overwritten.
        """
        self._request(
            "PATCH",
            f"/v2/households/{household.id}/creativetonies/{tonie.id}",
            json={"chapters": [c.to_dict() for c in chapters]},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = self._ensure_client()
        headers = {"Authorization": f"Bearer {self.session.access_token()}"}
        logger.debug("%s %s", method, path)
        resp = client.request(method, path, headers=headers, **kwargs)
        if not resp.is_success:
            raise ServiceError(resp.status_code, resp.text)
        return resp


def _json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as e:
        raise DecodeError(f"Response from {resp.request.url} is not JSON: {e}") from e


def _parse_list(data: Any, parse: Callable[[dict], T], what: str) -> list[T]:
    if not isinstance(data, list):
        raise DecodeError(f"Expected a list of {what}, got {type(data).__name__}")
    try:
        return [parse(item) for item in data]
    except _SHAPE_ERRORS as e:
        raise DecodeError(f"Unexpected {what} payload: {e!r}") from e
