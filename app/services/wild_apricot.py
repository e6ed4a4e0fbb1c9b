# =======================================================================================
# app/services/wild_apricot.py - Wild Apricot API Client
# =======================================================================================
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from ..config import config
from ..utils.exceptions import FetchError


class WildApricotClient:
    """
    Minimal Wild Apricot REST client: client-credentials token + contact list.

    Every request carries a timeout so a stalled upstream cannot hold a sync
    cycle open indefinitely. Any transport or protocol failure is raised as
    FetchError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        auth_url: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else config.WA_API_KEY
        self._auth_url = auth_url or config.WA_AUTH_URL
        self._api_url = (api_url or config.WA_API_URL).rstrip("/")
        self._timeout_s = timeout_s if timeout_s is not None else config.WA_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    def _get_access_token(self) -> str:
        if not self._api_key:
            raise FetchError("WA_API_KEY is not configured")

        try:
            resp = self._session.post(
                self._auth_url,
                auth=("APIKEY", self._api_key),
                data={"grant_type": "client_credentials", "scope": "auto"},
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise FetchError(f"Wild Apricot auth request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise FetchError(f"Wild Apricot auth rejected: HTTP {resp.status_code}")

        try:
            token = resp.json().get("access_token")
        except ValueError as e:
            raise FetchError("Wild Apricot auth response is not JSON") from e
        if not token:
            raise FetchError("Wild Apricot auth response has no access_token")
        return token

    def get_contacts(self, account_id: int) -> List[Dict[str, Any]]:
        """Fetch the full contact list of an account as raw dicts."""
        token = self._get_access_token()
        url = f"{self._api_url}/accounts/{account_id}/contacts"

        try:
            resp = self._session.get(
                url,
                params={"$async": "false"},
                headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
                timeout=self._timeout_s,
            )
        except requests.RequestException as e:
            raise FetchError(f"Wild Apricot contacts request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise FetchError(f"Wild Apricot contacts rejected: HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise FetchError("Wild Apricot contacts response is not JSON") from e

        contacts = payload.get("Contacts") if isinstance(payload, dict) else None
        if not isinstance(contacts, list):
            raise FetchError("Wild Apricot contacts response has no Contacts list")

        logger.debug(f"[wa] Fetched {len(contacts)} contacts for account {account_id}")
        return contacts
