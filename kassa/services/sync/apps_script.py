"""
Apps Script Ledger Client

DESIGN DECISION: The remote ledger is a Google Apps Script web app that
writes to a spreadsheet. It is reached with a single POST endpoint and an
"action" field selects the operation.

TRANSPORT CONTRACT:
- The body is JSON, but sent as text/plain. A "simple" request avoids the
  CORS pre-flight round trip that Apps Script cannot answer.
- Apps Script replies with a 302 to the rendered result; redirects are followed.
- The response must parse as a JSON object. Anything else is a network error.

There is no retry here. The save button is the retry.
"""

import json
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from kassa.config import BackendSettings, get_settings
from kassa.models.transaction import (
    HistorySnapshot,
    PhotoAttachment,
    SubmitReceipt,
    TransactionRecord,
)
from kassa.services.sync.interface import (
    AccessDeniedError,
    LedgerSyncInterface,
    NetworkError,
    RemoteValidationError,
    SetupRequiredError,
    SyncError,
)


logger = structlog.get_logger(__name__)

ACTION_SAVE = "save_transaction"
ACTION_HISTORY = "get_transactions"

CONTENT_TYPE = "text/plain;charset=utf-8"

# Error strings the backend uses, grouped by what the form should do about them
ACCESS_ERRORS = {"access_denied", "forbidden", "no_access", "unauthorized"}
SETUP_ERRORS = {"setup_required", "not_configured", "onboarding_required"}


def build_history_payload(user_token: str) -> dict[str, Any]:
    """Request body for the history fetch."""
    return {"action": ACTION_HISTORY, "userToken": user_token}


def build_submit_payload(
    record: TransactionRecord,
    user_token: str,
    photo: Optional[PhotoAttachment] = None,
) -> dict[str, Any]:
    """
    Request body for a new transaction.

    Amounts travel as canonical strings (no grouping spaces).
    Optional fields that are not set are left out entirely.
    """
    payload: dict[str, Any] = {
        "action": ACTION_SAVE,
        "userToken": user_token,
        "type": record.type.value,
        "date": record.date_text,
        "currency": record.currency.value,
        "amountRaw": record.amount.canonical,
    }
    if record.counterparty:
        payload["counterparty"] = record.counterparty
    if record.comment:
        payload["comment"] = record.comment
    if record.fx_rate is not None:
        payload["fxRateRaw"] = record.fx_rate.canonical
    if record.fx_currency is not None:
        payload["fxCurrency"] = record.fx_currency.value
    if photo is not None:
        payload.update(photo.to_payload())
    return payload


def classify_remote_error(error: Optional[str]) -> SyncError:
    """Map an `ok: false` error string to the matching exception."""
    code = (error or "").strip().lower()
    if code in ACCESS_ERRORS:
        return AccessDeniedError(f"Access denied: {code}", remote_error=error)
    if code in SETUP_ERRORS:
        return SetupRequiredError(f"Setup required: {code}", remote_error=error)
    return RemoteValidationError(
        f"Backend rejected the request: {error or 'no reason given'}",
        remote_error=error,
    )


def parse_items(raw_items: Any) -> tuple[list[TransactionRecord], int]:
    """
    Parse remote rows into records.

    Rows that do not validate are skipped and counted, like malformed
    spreadsheet rows elsewhere in this codebase.
    """
    if not isinstance(raw_items, list):
        return [], 0

    items = []
    skipped = 0
    for raw in raw_items:
        if not isinstance(raw, dict):
            skipped += 1
            continue
        try:
            items.append(TransactionRecord.model_validate(raw))
        except ValidationError as e:
            skipped += 1
            logger.warning("remote_item_skipped", error_count=e.error_count())
    return items, skipped


class AppsScriptSyncClient(LedgerSyncInterface):
    """
    httpx implementation of the ledger sync interface.

    One AsyncClient is reused for all calls; pass your own to control
    the transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        settings: Optional[BackendSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().backend
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.request_timeout_seconds),
            follow_redirects=self._settings.follow_redirects,
        )
        self._owns_client = http_client is None

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Send one request and return the parsed body.

        Raises:
            NetworkError: transport failure, timeout, bad status, bad body
            AccessDeniedError: HTTP 401/403
        """
        action = payload.get("action")
        try:
            response = await self._http.post(
                self._settings.url,
                content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers={"Content-Type": CONTENT_TYPE},
            )
        except httpx.TimeoutException as e:
            logger.warning("backend_timeout", action=action, error=str(e))
            raise NetworkError(f"Request timed out: {e}")
        except httpx.HTTPError as e:
            logger.warning("backend_unreachable", action=action, error=str(e))
            raise NetworkError(f"Request failed: {e}")

        if response.status_code in (401, 403):
            raise AccessDeniedError(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise NetworkError(f"Unexpected HTTP status {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            logger.warning(
                "backend_malformed_body",
                action=action,
                status=response.status_code,
                preview=response.text[:200],
            )
            raise NetworkError("Response body is not valid JSON")

        if not isinstance(body, dict):
            raise NetworkError("Response body is not a JSON object")

        if not body.get("ok"):
            error = classify_remote_error(body.get("error"))
            logger.info("backend_refused", action=action, kind=error.kind.value)
            raise error

        return body

    async def fetch_history(self, user_token: str) -> HistorySnapshot:
        """Fetch the authoritative transaction list."""
        body = await self._post(build_history_payload(user_token))
        items, skipped = parse_items(body.get("items"))
        user = body.get("user")
        logger.info("history_received", items=len(items), skipped=skipped)
        return HistorySnapshot(
            items=items,
            user=user if isinstance(user, dict) else None,
            skipped_items=skipped,
        )

    async def submit(
        self,
        record: TransactionRecord,
        user_token: str,
        photo: Optional[PhotoAttachment] = None,
    ) -> SubmitReceipt:
        """Submit a new transaction."""
        body = await self._post(build_submit_payload(record, user_token, photo))
        user = body.get("user")
        items = None
        if "items" in body:
            items, _ = parse_items(body.get("items"))
        logger.info("transaction_submitted", type=record.type.value)
        return SubmitReceipt(
            user=user if isinstance(user, dict) else None,
            items=items,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
