# storage_cost_engine/pricing/retail_api.py
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

import httpx
from rich.console import Console

from ..config import (
    DEFAULT_CURRENCY,
    HTTP_CONNECT_TIMEOUT_SECONDS,
    HTTP_TIMEOUT_SECONDS,
    RETAIL_API_URL,
    RETAIL_MAX_PAGES,
)
from .http_policy import HttpRetryPolicy

console = Console()
_LOGGER = logging.getLogger(__name__)


def _with_currency(url: str, currency: Optional[str]) -> str:
    if not currency or "currencyCode=" in url:
        return url
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}currencyCode={currency}"


def _dedup_key(it: Dict[str, Any]) -> Tuple[str, str, str, str, str]:
    return (
        str(it.get("armSkuName") or ""),
        str(it.get("meterName") or ""),
        str(it.get("skuName") or ""),
        str(it.get("productName") or it.get("ProductName") or ""),
        str(it.get("type") or it.get("Type") or ""),
    )


def _get_json(client: Any, url: str, params: Optional[Dict[str, str]], policy: HttpRetryPolicy) -> Dict[str, Any]:
    attempt = 0
    while True:
        resp = client.get(url, params=params)
        status = getattr(resp, "status_code", 200)
        if policy.should_retry(status, attempt):
            retry_after = (getattr(resp, "headers", None) or {}).get("Retry-After")
            _LOGGER.debug("Retail API returned %s, retrying (attempt %s)", status, attempt + 1)
            policy.wait(attempt, retry_after)
            attempt += 1
            continue
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Retail API payload: {type(data).__name__}")
        return data


def query_retail_prices(
    filter_str: str,
    currency: Optional[str] = DEFAULT_CURRENCY,
    max_pages: int = RETAIL_MAX_PAGES,
    retry_policy: Optional[HttpRetryPolicy] = None,
    debug: bool = False,
) -> List[Dict[str, Any]]:
    """
    Query the Azure Retail Prices API with an OData $filter and follow
    NextPageLink up to ``max_pages``.

    Raises httpx.HTTPError on transport faults and ValueError on a malformed
    payload. Callers that must not fail (the pricing lookup) catch both.
    """
    if not filter_str:
        return []

    policy = retry_policy or HttpRetryPolicy()
    params: Optional[Dict[str, str]] = {"$filter": filter_str}
    if currency:
        params["currencyCode"] = currency

    url: Optional[str] = RETAIL_API_URL
    items: List[Dict[str, Any]] = []
    page = 0

    timeout = httpx.Timeout(HTTP_TIMEOUT_SECONDS, connect=HTTP_CONNECT_TIMEOUT_SECONDS)
    client = httpx.Client(timeout=timeout)
    try:
        while url and page < max_pages:
            page += 1
            _LOGGER.debug("Retail API page %s: %s %s", page, url, params or "")
            if debug:
                console.print(f"[cyan]query_retail_prices: page {page}, filter={filter_str}[/cyan]")

            data = _get_json(client, url, params, policy)
            page_items = data.get("Items") or data.get("items") or []
            if not isinstance(page_items, list):
                raise ValueError(f"Unexpected Retail API Items: {type(page_items).__name__}")
            items.extend(it for it in page_items if isinstance(it, dict))

            next_url = data.get("NextPageLink") or data.get("nextPageLink")
            # NextPageLink already carries the filter; only the currency can go missing.
            url = _with_currency(next_url, currency) if next_url else None
            params = None
    finally:
        client.close()

    out: List[Dict[str, Any]] = []
    seen: Set[Tuple[str, str, str, str, str]] = set()
    for it in items:
        key = _dedup_key(it)
        if key in seen:
            continue
        seen.add(key)
        out.append(it)

    if debug:
        console.print(f"[cyan]query_retail_prices: fetched {len(items)} raw items, {len(out)} unique[/cyan]")

    return out
