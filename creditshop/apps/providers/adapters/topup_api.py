from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)
wire_logger = logging.getLogger('fulfillment.wire')

DEFAULT_TIMEOUT = (5, 20)  # (connect, read) seconds
VERIFY_PATH = 'ign/verify'
ORDER_PATH = 'orders'
_MASKED_HEADERS = ('X-API-Key', 'X-API-Secret')
_LOG_BODY_LIMIT = 2000


class TopupApiError(Exception):
    """Transport or configuration problem: the provider gave no usable answer."""

    def __init__(self, message: str, *, request: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.request = request or {}


@dataclass
class TopupApiCredentials:
    base_url: str | None
    api_key: str | None
    api_secret: str | None
    origin: str | None = None

    @classmethod
    def from_settings(cls) -> 'TopupApiCredentials':
        return cls(
            base_url=getattr(settings, 'TOPUP_API_BASE_URL', None),
            api_key=getattr(settings, 'TOPUP_API_KEY', None),
            api_secret=getattr(settings, 'TOPUP_API_SECRET', None),
            origin=getattr(settings, 'TOPUP_API_ORIGIN', None),
        )


@dataclass
class ProviderExchange:
    """One request/response round trip, kept verbatim for replay."""
    ok: bool
    request: Dict[str, Any]
    http_status: Optional[int]
    body: Any
    raw: str
    message: str = ''
    data: Dict[str, Any] = field(default_factory=dict)

    def as_record(self) -> Dict[str, Any]:
        return {
            'request': self.request,
            'httpStatus': self.http_status,
            'body': self.body,
            'raw': self.raw,
        }


def _mask(value: Optional[str]) -> str:
    if not value:
        return ''
    text = str(value)
    if len(text) <= 4:
        return '***'
    return f"{text[:2]}***{text[-2:]}"


class TopupApiAdapter:
    def _sim(self) -> bool:
        return bool(getattr(settings, 'TOPUP_API_SIMULATE', False))

    def _timeout(self) -> tuple:
        connect = getattr(settings, 'TOPUP_API_CONNECT_TIMEOUT', None) or DEFAULT_TIMEOUT[0]
        read = getattr(settings, 'TOPUP_API_READ_TIMEOUT', None) or DEFAULT_TIMEOUT[1]
        return (float(connect), float(read))

    def _base(self, creds: TopupApiCredentials) -> str:
        base = (creds.base_url or '').strip().rstrip('/')
        if not base:
            raise TopupApiError('Missing base_url for top-up provider')
        return base

    def _headers(self, creds: TopupApiCredentials) -> Dict[str, str]:
        if not creds.api_key or not creds.api_secret:
            raise TopupApiError('Top-up provider credentials are not configured')
        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'X-API-Key': creds.api_key,
            'X-API-Secret': creds.api_secret,
        }
        if creds.origin:
            headers['Origin'] = creds.origin
        return headers

    def _safe_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        return {k: (_mask(v) if k in _MASKED_HEADERS else v) for k, v in headers.items()}

    def _post(self, creds: TopupApiCredentials, path: str, payload: Dict[str, Any]) -> ProviderExchange:
        url = f"{self._base(creds)}/{path}"
        headers = self._headers(creds)
        request_record = {'method': 'POST', 'url': url, 'headers': self._safe_headers(headers), 'json': payload}
        wire_logger.info('-> POST %s headers=%s body=%s', url, request_record['headers'], payload)

        try:
            resp = requests.post(url, json=payload, headers=headers, timeout=self._timeout())
        except requests.Timeout as exc:
            wire_logger.warning('<- POST %s timed out: %s', url, exc)
            raise TopupApiError(f'Provider timed out: {exc}', request=request_record) from exc
        except requests.RequestException as exc:
            wire_logger.warning('<- POST %s failed: %s', url, exc)
            raise TopupApiError(f'Provider unreachable: {exc}', request=request_record) from exc

        raw = resp.text or ''
        wire_logger.info('<- %s %s raw=%s', resp.status_code, url, raw[:_LOG_BODY_LIMIT])
        try:
            body = resp.json()
        except ValueError:
            body = None
        return ProviderExchange(
            ok=False,
            request=request_record,
            http_status=resp.status_code,
            body=body,
            raw=raw,
            data=body if isinstance(body, dict) else {},
        )

    @staticmethod
    def _message(exchange: ProviderExchange, fallback: str) -> str:
        data = exchange.data
        for key in ('message', 'error', 'detail'):
            value = data.get(key)
            if value:
                return str(value)
        if exchange.body is None:
            return f'{fallback} (invalid response, HTTP {exchange.http_status})'
        return fallback

    def verify_identity(
        self,
        creds: TopupApiCredentials,
        variation_id: int,
        uid: str,
        zone_id: str,
    ) -> ProviderExchange:
        payload = {'variation_id': int(variation_id), 'uid': str(uid), 'zone_id': str(zone_id)}
        if self._sim():
            logger.warning('Top-up adapter in SIMULATION mode - verification not sent')
            body = {'status': 'success', 'verified': True, 'display': f'SIM-{uid}'}
            return ProviderExchange(
                ok=True, request={'simulated': True, 'json': payload}, http_status=200,
                body=body, raw=str(body), data=body,
            )

        exchange = self._post(creds, VERIFY_PATH, payload)
        data = exchange.data
        http_ok = exchange.http_status is not None and 200 <= exchange.http_status < 300
        exchange.ok = http_ok and data.get('status') == 'success' and data.get('verified') is True
        exchange.message = '' if exchange.ok else self._message(exchange, 'Player verification failed')
        return exchange

    def submit_order(
        self,
        creds: TopupApiCredentials,
        variation_id: int,
        qty: int,
        uid: str,
        zone_id: str,
        reference_id: str,
    ) -> ProviderExchange:
        payload = {
            'variation_id': int(variation_id),
            'qty': int(qty),
            'uid': str(uid),
            'zone_id': str(zone_id),
            'reference_id': str(reference_id),
        }
        if self._sim():
            logger.warning('Top-up adapter in SIMULATION mode - order not sent')
            body = {'status': 'success', 'transaction_id': f'SIM-{reference_id}'}
            return ProviderExchange(
                ok=True, request={'simulated': True, 'json': payload}, http_status=200,
                body=body, raw=str(body), data=body,
            )

        exchange = self._post(creds, ORDER_PATH, payload)
        data = exchange.data
        http_ok = exchange.http_status is not None and 200 <= exchange.http_status < 300
        exchange.ok = http_ok and data.get('status') == 'success'
        exchange.message = '' if exchange.ok else self._message(exchange, 'Order creation failed')
        return exchange

    @staticmethod
    def display_name(exchange: ProviderExchange) -> str:
        return str(exchange.data.get('display') or '')

    @staticmethod
    def transaction_id(exchange: ProviderExchange) -> str:
        data = exchange.data
        return str(data.get('transaction_id') or data.get('order_id') or '')
