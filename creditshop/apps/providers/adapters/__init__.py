from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .topup_api import (
    ProviderExchange,
    TopupApiAdapter,
    TopupApiCredentials,
    TopupApiError,
)


@dataclass(frozen=True)
class AdapterBinding:
    provider: str
    adapter: Any
    _builder: Callable[[Dict[str, Any]], Any]

    def credentials(self, values: Dict[str, Any]):
        return self._builder(values)


def _topup_api_builder(values: Dict[str, Any]) -> TopupApiCredentials:
    defaults = TopupApiCredentials.from_settings()
    return TopupApiCredentials(
        base_url=values.get('base_url') or defaults.base_url,
        api_key=values.get('api_key') or defaults.api_key,
        api_secret=values.get('api_secret') or defaults.api_secret,
        origin=values.get('origin') or defaults.origin,
    )


def get_adapter(provider: str) -> Optional[AdapterBinding]:
    key = (provider or '').strip().lower()
    if key in ('topup_api', 'mobile_legends'):
        return AdapterBinding(provider='topup_api', adapter=TopupApiAdapter(), _builder=_topup_api_builder)
    return None


def _apply_overrides(values: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    mapping = {
        'baseUrl': 'base_url',
        'base_url': 'base_url',
        'apiKey': 'api_key',
        'api_key': 'api_key',
        'apiSecret': 'api_secret',
        'api_secret': 'api_secret',
        'origin': 'origin',
    }
    updated = dict(values)
    for key, value in overrides.items():
        alias = mapping.get(key)
        if alias:
            updated[alias] = value
    return updated


def resolve_adapter_credentials(
    provider: str = 'topup_api',
    *,
    overrides: Optional[Dict[str, Any]] = None,
) -> tuple[Optional[AdapterBinding], Optional[Any]]:
    binding = get_adapter(provider)
    if not binding:
        return None, None
    values: Dict[str, Any] = {'provider': provider}
    if overrides:
        values = _apply_overrides(values, overrides)
    return binding, binding.credentials(values)


__all__ = [
    'AdapterBinding',
    'get_adapter',
    'resolve_adapter_credentials',
    'ProviderExchange',
    'TopupApiAdapter',
    'TopupApiCredentials',
    'TopupApiError',
]
