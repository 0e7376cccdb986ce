"""Actual billing lookups (Azure Cost Management)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol

import httpx

from ..config import (
    COST_MANAGEMENT_API_URL,
    COST_MANAGEMENT_API_VERSION,
    HTTP_CONNECT_TIMEOUT_SECONDS,
    HTTP_TIMEOUT_SECONDS,
)
from ..pricing.http_policy import HttpRetryPolicy

_LOGGER = logging.getLogger(__name__)

# Cost Management pages are large; a single resource rarely needs more than one.
MAX_QUERY_PAGES = 5


@dataclass(frozen=True)
class CostEntry:
    """One observed billing row for a resource."""

    cost: float
    currency: str = "USD"
    usage_date: Optional[date] = None
    meter: str = ""
    meter_subcategory: str = ""
    resource_id: str = ""


class ActualCostLookup(Protocol):
    def get_actual_cost(
        self,
        subscription_id: str,
        resource_id: str,
        start_date: date,
        end_date: date,
    ) -> Optional[List[CostEntry]]: ...


def _parse_usage_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    s = str(value).strip()
    # UsageDate comes back as 20240131 (number) or an ISO timestamp.
    if s.isdigit() and len(s) == 8:
        return datetime.strptime(s, "%Y%m%d").date()
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_query_rows(payload: Dict[str, Any], resource_id: str = "") -> List[CostEntry]:
    """Map a Cost Management query response (columns + rows) to CostEntry items."""
    props = payload.get("properties") or {}
    columns = [str((c or {}).get("name") or "").lower() for c in props.get("columns") or []]
    rows = props.get("rows") or []

    def idx(*names: str) -> Optional[int]:
        for n in names:
            if n in columns:
                return columns.index(n)
        return None

    i_cost = idx("cost", "pretaxcost", "costusd")
    if i_cost is None:
        raise ValueError("Cost Management response has no cost column")
    i_date = idx("usagedate", "date")
    i_currency = idx("currency")
    i_meter = idx("meter")
    i_sub = idx("metersubcategory")

    out: List[CostEntry] = []
    for row in rows:
        if not isinstance(row, list) or len(row) <= i_cost:
            continue
        try:
            cost = float(row[i_cost])
        except (TypeError, ValueError):
            continue
        out.append(
            CostEntry(
                cost=cost,
                currency=str(row[i_currency]) if i_currency is not None else "USD",
                usage_date=_parse_usage_date(row[i_date]) if i_date is not None else None,
                meter=str(row[i_meter] or "") if i_meter is not None else "",
                meter_subcategory=str(row[i_sub] or "") if i_sub is not None else "",
                resource_id=resource_id,
            )
        )
    return out


def build_query_body(resource_id: str, start_date: date, end_date: date) -> Dict[str, Any]:
    return {
        "type": "ActualCost",
        "timeframe": "Custom",
        "timePeriod": {
            "from": f"{start_date.isoformat()}T00:00:00Z",
            "to": f"{end_date.isoformat()}T23:59:59Z",
        },
        "dataset": {
            "granularity": "Daily",
            "aggregation": {"totalCost": {"name": "Cost", "function": "Sum"}},
            "grouping": [
                {"type": "Dimension", "name": "MeterSubcategory"},
                {"type": "Dimension", "name": "Meter"},
            ],
            "filter": {
                "dimensions": {"name": "ResourceId", "operator": "In", "values": [resource_id]}
            },
        },
    }


class CostManagementClient:
    """
    ActualCostLookup over the Cost Management query API.

    ``token_provider`` returns a bearer token for https://management.azure.com;
    acquiring it (managed identity, CLI login, ...) is the caller's business.
    Transport errors propagate as httpx.HTTPError; the disk calculator turns
    them into "no billing data".
    """

    def __init__(
        self,
        token_provider: Callable[[], str],
        base_url: str = COST_MANAGEMENT_API_URL,
        api_version: str = COST_MANAGEMENT_API_VERSION,
        retry_policy: Optional[HttpRetryPolicy] = None,
    ):
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.retry_policy = retry_policy or HttpRetryPolicy()

    def _query_url(self, subscription_id: str) -> str:
        return (
            f"{self.base_url}/subscriptions/{subscription_id}"
            f"/providers/Microsoft.CostManagement/query?api-version={self.api_version}"
        )

    def _post(self, client: Any, url: str, body: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        attempt = 0
        while True:
            resp = client.post(url, json=body, headers=headers)
            status = getattr(resp, "status_code", 200)
            if self.retry_policy.should_retry(status, attempt):
                retry_after = (getattr(resp, "headers", None) or {}).get("Retry-After")
                self.retry_policy.wait(attempt, retry_after)
                attempt += 1
                continue
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, dict):
                raise ValueError("Unexpected Cost Management payload")
            return data

    def get_actual_cost(
        self,
        subscription_id: str,
        resource_id: str,
        start_date: date,
        end_date: date,
    ) -> Optional[List[CostEntry]]:
        if not subscription_id or not resource_id:
            return None

        headers = {
            "Authorization": f"Bearer {self.token_provider()}",
            "Content-Type": "application/json",
        }
        body = build_query_body(resource_id, start_date, end_date)
        url: Optional[str] = self._query_url(subscription_id)
        entries: List[CostEntry] = []
        page = 0

        timeout = httpx.Timeout(HTTP_TIMEOUT_SECONDS, connect=HTTP_CONNECT_TIMEOUT_SECONDS)
        client = httpx.Client(timeout=timeout)
        try:
            while url and page < MAX_QUERY_PAGES:
                page += 1
                _LOGGER.debug("Cost Management query page %s for %s", page, resource_id)
                data = self._post(client, url, body, headers)
                entries.extend(parse_query_rows(data, resource_id))
                url = (data.get("properties") or {}).get("nextLink")
        finally:
            client.close()

        return entries
