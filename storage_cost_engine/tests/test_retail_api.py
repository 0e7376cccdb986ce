from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

import pytest

from storage_cost_engine.pricing import retail_api
from storage_cost_engine.pricing.http_policy import HttpRetryPolicy


class DummyResponse:
    def __init__(self, payload, status_code=200, headers=None):
        self._payload = payload
        self.status_code = status_code
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")
        return None

    def json(self):
        return self._payload


def _install(monkeypatch, responses, requests):
    class DummyClient:
        def __init__(self, *args, **kwargs):
            self.closed = False

        def get(self, url, params=None):
            requests.append((url, params))
            return responses.pop(0)

        def close(self):
            return None

    monkeypatch.setattr(retail_api, "httpx", SimpleNamespace(Client=DummyClient, Timeout=lambda *a, **k: None))


def test_follows_next_page_link_and_keeps_currency(monkeypatch):
    requests = []
    responses = [
        DummyResponse(
            {
                "Items": [{"meterName": "Hot LRS Data Stored", "skuName": "Hot LRS"}],
                "NextPageLink": "https://prices.azure.com/api/retail/prices?$filter=x&$skip=100",
            }
        ),
        DummyResponse({"Items": [{"meterName": "Hot LRS Write Operations", "skuName": "Hot LRS"}], "NextPageLink": None}),
    ]
    _install(monkeypatch, responses, requests)

    items = retail_api.query_retail_prices("serviceName eq 'Storage'", currency="EUR")

    assert [it["meterName"] for it in items] == ["Hot LRS Data Stored", "Hot LRS Write Operations"]
    first_url, first_params = requests[0]
    assert first_params == {"$filter": "serviceName eq 'Storage'", "currencyCode": "EUR"}
    second_url, second_params = requests[1]
    assert second_params is None
    assert parse_qs(urlparse(second_url).query).get("currencyCode") == ["EUR"]


def test_duplicate_items_are_dropped(monkeypatch):
    row = {"meterName": "P10 LRS Disk", "skuName": "P10 LRS", "productName": "Premium SSD Managed Disks", "type": "Consumption"}
    _install(monkeypatch, [DummyResponse({"Items": [row, dict(row)]})], [])

    assert len(retail_api.query_retail_prices("x")) == 1


def test_stops_at_max_pages(monkeypatch):
    requests = []
    looping = {"Items": [], "NextPageLink": "https://prices.azure.com/api/retail/prices?$skip=100"}
    _install(monkeypatch, [DummyResponse(looping) for _ in range(5)], requests)

    retail_api.query_retail_prices("x", max_pages=3)

    assert len(requests) == 3


def test_retries_throttled_requests(monkeypatch):
    requests = []
    sleeps = []
    responses = [
        DummyResponse({}, status_code=429, headers={"Retry-After": "2"}),
        DummyResponse({"Items": [{"meterName": "Standard Capacity"}]}),
    ]
    _install(monkeypatch, responses, requests)

    items = retail_api.query_retail_prices("x", retry_policy=HttpRetryPolicy(max_retries=2, sleep=sleeps.append))

    assert len(items) == 1
    assert len(requests) == 2
    assert sleeps == [2.0]


def test_non_object_payload_raises_value_error(monkeypatch):
    _install(monkeypatch, [DummyResponse(["not", "a", "dict"])], [])

    with pytest.raises(ValueError):
        retail_api.query_retail_prices("x")


def test_empty_filter_makes_no_request(monkeypatch):
    requests = []
    _install(monkeypatch, [], requests)

    assert retail_api.query_retail_prices("") == []
    assert requests == []


def test_backoff_delay_grows_and_is_capped():
    policy = HttpRetryPolicy(max_retries=3, base_delay=1.0, max_delay=5.0)

    assert 1.0 <= policy.delay_for(0) <= 1.2
    assert 4.0 <= policy.delay_for(2) <= 4.8
    assert policy.delay_for(10) <= 6.0
    assert policy.should_retry(503, 2)
    assert not policy.should_retry(503, 3)
    assert not policy.should_retry(404, 0)


def test_items_that_are_not_a_list_raise_value_error(monkeypatch):
    _install(monkeypatch, [DummyResponse({"Items": {"meterName": "Standard Capacity"}})], [])

    with pytest.raises(ValueError):
        retail_api.query_retail_prices("x")


def test_non_object_items_are_skipped(monkeypatch):
    _install(monkeypatch, [DummyResponse({"Items": ["junk", {"meterName": "Standard Capacity"}]})], [])

    assert retail_api.query_retail_prices("x") == [{"meterName": "Standard Capacity"}]
