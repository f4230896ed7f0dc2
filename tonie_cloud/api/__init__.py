"""Tonie cloud API package: session state, models and the HTTP client.

WHY: Every interaction with the Tonies cloud is an authenticated REST call.
This package owns the token lifecycle, the typed response models and the
error taxonomy.

HOW: TonieClient (client.py) wraps httpx.Client and keeps its token and
selected household on a Session (session.py). Responses are parsed into
dataclasses from models.py; failures raise the types in errors.py.

RULES:
- All HTTP calls go through TonieClient (no direct httpx usage elsewhere)
- Authentication is a bearer token from the OAuth2 password grant
"""

from tonie_cloud.api.client import TonieClient
from tonie_cloud.api.models import Chapter, CreativeTonie, Household, UploadSlot
from tonie_cloud.api.session import Session

__all__ = ["Chapter", "CreativeTonie", "Household", "Session", "TonieClient", "UploadSlot"]
