"""HTTP client for the Tuya Web home-assistant skill API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from .exceptions import (
    AuthenticationError,
    RemoteError,
    RemoteFetchError,
    RemoteSetError,
)

_LOGGER = logging.getLogger(__name__)

AUTH_BASE_URL = "https://px1.tuyaeu.com"
AUTH_ENDPOINT = "/homeassistant/auth.do"
REFRESH_ENDPOINT = "/homeassistant/access.do"
SKILL_ENDPOINT = "/homeassistant/skill"
REFRESH_OFFSET = timedelta(seconds=60)
SUCCESS_CODE = "SUCCESS"

_AREA_BASE_URLS = {
    "AY": "https://px1.tuyacn.com",
    "EU": "https://px1.tuyaeu.com",
    "US": "https://px1.tuyaus.com",
}


def base_url_for_token(access_token: str) -> str:
    """Return the regional API host encoded in the token prefix."""

    return _AREA_BASE_URLS.get(access_token[:2].upper(), _AREA_BASE_URLS["US"])


@dataclass(frozen=True)
class Session:
    """Access and refresh tokens issued by the cloud."""

    access_token: str
    refresh_token: str
    expires_at: datetime
    base_url: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Session:
        """Create a session from an auth or refresh response."""

        access_token = payload["access_token"]
        return cls(
            access_token=access_token,
            refresh_token=payload["refresh_token"],
            expires_at=datetime.now(timezone.utc)
            + timedelta(seconds=int(payload["expires_in"])),
            base_url=base_url_for_token(access_token),
        )

    def should_refresh(self, now: datetime | None = None) -> bool:
        """Return True if the access token is about to expire."""

        if now is None:
            now = datetime.now(timezone.utc)
        return now >= (self.expires_at - REFRESH_OFFSET)


@dataclass(frozen=True, slots=True)
class TuyaDevice:
    """Device metadata and last state returned by discovery."""

    id: str
    name: str
    dev_type: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> TuyaDevice:
        """Normalise a discovery entry."""

        return cls(
            id=str(payload["id"]),
            name=payload.get("name") or str(payload["id"]),
            dev_type=payload.get("dev_type", ""),
            data=dict(payload.get("data") or {}),
        )


class TuyaWebApi:
    """Authenticate against the cloud and query or control devices."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        username: str,
        password: str,
        country_code: str,
        platform: str = "tuya",
        logger: logging.Logger | None = None,
    ) -> None:
        """Bind the HTTP client and the account credentials."""

        self._client = client
        self._username = username
        self._password = password
        self._country_code = country_code
        self._platform = platform
        self._logger = logger or _LOGGER
        self._session: Session | None = None
        self._session_lock = asyncio.Lock()

    @property
    def session(self) -> Session | None:
        """Return the current session, if logged in."""

        return self._session

    async def async_login(self) -> Session:
        """Log in with the configured credentials."""

        form = {
            "userName": self._username,
            "password": self._password,
            "countryCode": self._country_code,
            "bizType": self._platform,
            "from": "tuya",
        }
        payload = await self._auth_request(
            "POST", AUTH_BASE_URL + AUTH_ENDPOINT, data=form
        )
        self._session = Session.from_payload(payload)
        self._logger.debug("Logged in; using %s", self._session.base_url)
        return self._session

    async def _refresh_session(self, session: Session) -> Session:
        params = {
            "grant_type": "refresh_token",
            "refresh_token": session.refresh_token,
        }
        payload = await self._auth_request(
            "GET", session.base_url + REFRESH_ENDPOINT, params=params
        )
        self._session = Session.from_payload(payload)
        return self._session

    async def _auth_request(
        self, method: str, url: str, **kwargs: Any
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as err:
            self._session = None
            raise AuthenticationError(f"Authentication request failed: {err}") from err
        if not isinstance(payload, dict) or "access_token" not in payload:
            self._session = None
            message = "Authentication rejected"
            if isinstance(payload, dict) and payload.get("errorMsg"):
                message = f"{message}: {payload['errorMsg']}"
            raise AuthenticationError(message)
        return payload

    async def _active_session(self) -> Session:
        """Return a session with a usable access token."""

        async with self._session_lock:
            if self._session is None:
                return await self.async_login()
            if self._session.should_refresh():
                return await self._refresh_session(self._session)
            return self._session

    async def _skill(
        self,
        name: str,
        namespace: str,
        payload: Mapping[str, Any],
        error_cls: type[RemoteError],
    ) -> dict[str, Any]:
        """Call the skill endpoint and return the response payload."""

        session = await self._active_session()
        body = {
            "header": {"name": name, "namespace": namespace, "payloadVersion": 1},
            "payload": {"accessToken": session.access_token, **payload},
        }
        try:
            response = await self._client.post(
                session.base_url + SKILL_ENDPOINT, json=body
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as err:
            raise error_cls(f"{name} request failed: {err}") from err

        header = data.get("header", {}) if isinstance(data, dict) else {}
        code = header.get("code")
        if code != SUCCESS_CODE:
            message = header.get("msg") or f"{name} returned {code}"
            raise error_cls(message, code=code)
        return data.get("payload") or {}

    async def discover_devices(self) -> list[TuyaDevice]:
        """Return every device linked to the account."""

        payload = await self._skill("Discovery", "discovery", {}, RemoteFetchError)
        return [TuyaDevice.from_dict(entry) for entry in payload.get("devices", [])]

    async def get_device_state(self, device_id: str) -> dict[str, Any]:
        """Return the raw state snapshot for ``device_id``."""

        payload = await self._skill(
            "QueryDevice", "query", {"devId": device_id}, RemoteFetchError
        )
        return dict(payload.get("data") or {})

    async def set_device_state(
        self, device_id: str, command: str, payload: Mapping[str, Any]
    ) -> None:
        """Send ``command`` with ``payload`` to ``device_id``."""

        await self._skill(
            command, "control", {"devId": device_id, **payload}, RemoteSetError
        )
