"""Shared test fixtures for the tonie_cloud test suite.

WHY: Most tests exercise TonieClient against realistic service behaviour:
token exchange, household and figurine listings, pre-signed uploads and
chapter list rewrites. A single in-memory fake of the Tonies cloud keeps
those tests consistent and independent of the network.

HOW: FakeTonieCloud implements the endpoints as an httpx.MockTransport
handler and records every request. The ``client`` fixture wires a
TonieClient to it; ``authed_client`` additionally logs in. ScriptedPrompt
answers interactive questions from a list.

RULES:
- No test talks to the real service
- Every test gets a fresh FakeTonieCloud
- Failure injection goes through FakeTonieCloud.errors / upload_error
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs

import httpx
import pytest

from tonie_cloud.api.client import TonieClient
from tonie_cloud.core.prompts import PromptProvider

API_URL = "https://api.tonie.test"
AUTH_URL = "https://login.tonie.test/token"
UPLOAD_URL = "https://s3.tonie.test/uploads"

USERNAME = "parent@example.com"
PASSWORD = "correct horse"
TOKEN = "token-abc123"


# ---------------------------------------------------------------------------
# Sample service data
# ---------------------------------------------------------------------------

HOUSEHOLD = {
    "id": "hh-1",
    "name": "Family",
    "image": "https://cdn.tonie.test/hh-1.png",
    "foreignCreativeTonieContent": False,
    "access": "owner",
    "canLeave": False,
    "ownerName": "Alex",
}

SECOND_HOUSEHOLD = {
    "id": "hh-2",
    "name": "Grandparents",
    "image": "https://cdn.tonie.test/hh-2.png",
    "foreignCreativeTonieContent": True,
    "access": "member",
    "canLeave": True,
    "ownerName": "Sam",
}

CHAPTER_INTRO = {"id": "c-1", "title": "Intro", "file": "f-1", "seconds": 12.5, "transcoding": False}
CHAPTER_STORY_ONE = {"id": "c-2", "title": "Story One", "file": "f-2", "seconds": 300.0, "transcoding": False}
CHAPTER_STORY_TWO = {"id": "c-3", "title": "Story Two", "file": "f-3", "seconds": 420.0, "transcoding": False}

BEDTIME_TONIE = {
    "id": "ct-1",
    "householdId": "hh-1",
    "name": "Bedtime",
    "live": False,
    "private": False,
    "imageUrl": "https://cdn.tonie.test/ct-1.png",
    "transcodingErrors": [],
    "secondsRemaining": 4667.5,
    "secondsPresent": 732.5,
    "chaptersRemaining": 96,
    "chaptersPresent": 3,
    "transcoding": False,
    "chapters": [CHAPTER_INTRO, CHAPTER_STORY_ONE, CHAPTER_STORY_TWO],
}

CAR_TONIE = {
    "id": "ct-2",
    "householdId": "hh-1",
    "name": "Car",
    "chapters": [],
}


class FakeTonieCloud:
    """In-memory stand-in for the identity provider, API and blob store."""

    def __init__(self) -> None:
        self.households: List[Dict[str, Any]] = [copy.deepcopy(HOUSEHOLD)]
        self.tonies: Dict[str, List[Dict[str, Any]]] = {
            "hh-1": [copy.deepcopy(BEDTIME_TONIE), copy.deepcopy(CAR_TONIE)],
            "hh-2": [],
        }
        self.blobs: Dict[str, bytes] = {}
        self.requests: List[httpx.Request] = []
        # (method, path) -> HTTP status to answer instead of the normal response
        self.errors: Dict[Tuple[str, str], int] = {}
        self.upload_error: Optional[Exception] = None
        self.upload_status = 204
        self._file_counter = 0
        self._chapter_counter = 0

    # -- helpers -----------------------------------------------------------

    def calls(self, method: str, path_pattern: str) -> List[httpx.Request]:
        """Recorded requests whose method matches and whose path matches the regex."""
        return [
            r for r in self.requests
            if r.method == method and re.fullmatch(path_pattern, r.url.path)
        ]

    def tonie(self, tonie_id: str) -> Dict[str, Any]:
        for tonies in self.tonies.values():
            for tonie in tonies:
                if tonie["id"] == tonie_id:
                    return tonie
        raise KeyError(tonie_id)

    # -- transport ---------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        url = str(request.url)

        if url == AUTH_URL:
            return self._token(request)
        if url.startswith(UPLOAD_URL):
            return self._upload(request)

        injected = self.errors.get((request.method, request.url.path))
        if injected is not None:
            return httpx.Response(injected, json={"error": "injected"})

        if request.headers.get("Authorization") != "Bearer {}".format(TOKEN):
            return httpx.Response(401, json={"error": "unauthorized"})
        return self._api(request)

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        if (
            form.get("grant_type") == "password"
            and form.get("client_id") == "my-tonies"
            and form.get("scope") == "openid"
            and form.get("username") == USERNAME
            and form.get("password") == PASSWORD
        ):
            return httpx.Response(200, json={"access_token": TOKEN, "token_type": "Bearer"})
        return httpx.Response(401, json={"error": "invalid_grant"})

    def _upload(self, request: httpx.Request) -> httpx.Response:
        if self.upload_error is not None:
            raise self.upload_error
        if self.upload_status >= 300:
            return httpx.Response(self.upload_status, text="<Error>AccessDenied</Error>")
        body = request.content
        match = re.search(rb'name="key"\r\n\r\n([^\r]+)\r\n', body)
        if match is None or b'name="file"' not in body:
            return httpx.Response(400, text="<Error>MalformedPOSTRequest</Error>")
        self.blobs[match.group(1).decode()] = body
        return httpx.Response(self.upload_status)

    def _api(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path

        if method == "GET" and path == "/v2/me":
            return httpx.Response(200, json={"email": USERNAME, "firstName": "Alex"})
        if method == "GET" and path == "/v2/households":
            return httpx.Response(200, json=self.households)
        if method == "POST" and path == "/v2/file":
            self._file_counter += 1
            file_id = "upload-{}".format(self._file_counter)
            return httpx.Response(201, json={
                "fileId": file_id,
                "request": {
                    "url": UPLOAD_URL,
                    "fields": {"key": file_id, "policy": "cG9saWN5", "x-amz-signature": "sig"},
                },
            })

        match = re.fullmatch(r"/v2/households/([^/]+)/creativetonies", path)
        if method == "GET" and match:
            return httpx.Response(200, json=self.tonies.get(match.group(1), []))

        match = re.fullmatch(r"/v2/households/([^/]+)/creativetonies/([^/]+)/chapters", path)
        if method == "POST" and match:
            body = json.loads(request.content)
            if body.get("file") not in self.blobs:
                return httpx.Response(400, json={"error": "unknown file"})
            self._chapter_counter += 1
            tonie = self.tonie(match.group(2))
            tonie["chapters"].append({
                "id": "new-{}".format(self._chapter_counter),
                "title": body["title"],
                "file": body["file"],
                "seconds": 0.0,
                "transcoding": True,
            })
            return httpx.Response(200, json={})

        match = re.fullmatch(r"/v2/households/([^/]+)/creativetonies/([^/]+)", path)
        if method == "PATCH" and match:
            tonie = self.tonie(match.group(2))
            tonie["chapters"] = json.loads(request.content)["chapters"]
            return httpx.Response(200, json=tonie)

        return httpx.Response(404, json={"error": "not found"})


class ScriptedPrompt(PromptProvider):
    """Prompt provider answering from canned values and recording questions."""

    def __init__(self, answers: Optional[List[str]] = None, confirm: bool = False) -> None:
        self.answers = list(answers or [])
        self.confirm_answer = confirm
        self.asked: List[str] = []
        self.confirmations: List[str] = []

    def ask(self, label: str) -> str:
        self.asked.append(label)
        return self.answers.pop(0)

    def confirm(self, message: str, action: str) -> bool:
        self.confirmations.append(message)
        return self.confirm_answer


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _no_env_credentials(monkeypatch):
    """Keep a developer's .env credentials out of the tests."""
    monkeypatch.delenv("TONIE_USERNAME", raising=False)
    monkeypatch.delenv("TONIE_PASSWORD", raising=False)


@pytest.fixture
def cloud():
    return FakeTonieCloud()


@pytest.fixture
def client(cloud):
    """TonieClient talking to the fake cloud, not yet authenticated."""
    with TonieClient(
        base_url=API_URL,
        auth_url=AUTH_URL,
        transport=httpx.MockTransport(cloud.handler),
    ) as c:
        yield c


@pytest.fixture
def authed_client(client):
    client.authenticate(USERNAME, PASSWORD)
    return client


@pytest.fixture
def make_prompt():
    return ScriptedPrompt


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "lullaby.mp3"
    path.write_bytes(b"ID3\x03\x00fake mp3 payload")
    return path
