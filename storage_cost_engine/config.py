#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
config.py

Configuration constants and defaults for the storage cost engine.

Every value can be overridden through an environment variable so the same
code runs unchanged in a local shell, a worker process or a test session.
The calculators never read the environment themselves; they import the
constants from here.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------
# Azure Retail Prices API
# ---------------------------------------------------------------------
# Public, unauthenticated endpoint used for list prices.
RETAIL_API_URL = os.getenv("STORAGECOST_RETAIL_API_URL", "https://prices.azure.com/api/retail/prices")

# Max pages followed through NextPageLink for a single filter.
# Storage filters rarely exceed two pages (100 items per page).
RETAIL_MAX_PAGES = int(os.getenv("STORAGECOST_RETAIL_MAX_PAGES", "10"))

# ---------------------------------------------------------------------
# Azure Cost Management API (actual billing)
# ---------------------------------------------------------------------
COST_MANAGEMENT_API_URL = os.getenv("STORAGECOST_COST_MANAGEMENT_URL", "https://management.azure.com")
COST_MANAGEMENT_API_VERSION = os.getenv("STORAGECOST_COST_MANAGEMENT_API_VERSION", "2023-03-01")

# ---------------------------------------------------------------------
# HTTP behaviour (shared by retail and billing clients)
# ---------------------------------------------------------------------
HTTP_TIMEOUT_SECONDS = float(os.getenv("STORAGECOST_HTTP_TIMEOUT", "60"))
HTTP_CONNECT_TIMEOUT_SECONDS = float(os.getenv("STORAGECOST_HTTP_CONNECT_TIMEOUT", "10"))
HTTP_MAX_RETRIES = int(os.getenv("STORAGECOST_HTTP_MAX_RETRIES", "4"))
HTTP_RETRY_BASE_DELAY = float(os.getenv("STORAGECOST_HTTP_RETRY_BASE_DELAY", "1.0"))

# ---------------------------------------------------------------------
# Defaults: currency
# ---------------------------------------------------------------------
DEFAULT_CURRENCY = os.getenv("STORAGECOST_DEFAULT_CURRENCY", "USD")

# ---------------------------------------------------------------------
# Price cache
# ---------------------------------------------------------------------
# PRICE_CACHE_TTL_SECONDS:
# - How long a (resource type, region, sku, redundancy) lookup stays valid.
# - Retail prices change at most monthly; 24h keeps catalog traffic low.
PRICE_CACHE_TTL_SECONDS = float(os.getenv("STORAGECOST_PRICE_CACHE_TTL", str(24 * 3600)))

# CACHE_FILE:
# - Optional JSON file to persist the price cache between runs.
# - Empty string keeps the cache in memory only.
CACHE_FILE = os.getenv("STORAGECOST_CACHE_FILE", "").strip()

# ---------------------------------------------------------------------
# Estimation window
# ---------------------------------------------------------------------
ESTIMATE_PERIOD_DAYS = int(os.getenv("STORAGECOST_ESTIMATE_PERIOD_DAYS", "30"))
ACTUAL_BILLING_LOOKBACK_DAYS = int(os.getenv("STORAGECOST_BILLING_LOOKBACK_DAYS", "30"))

# Decimal places kept on each cost component. Display totals use 2.
COST_PRECISION = 6
DISPLAY_PRECISION = 2

# ---------------------------------------------------------------------
# Trend classification
# ---------------------------------------------------------------------
# Daily growth rate (percent) above/below which a cost series is
# classified as Increasing / Decreasing. Anything in between is Stable.
TREND_GROWTH_THRESHOLD_PCT = float(os.getenv("STORAGECOST_TREND_GROWTH_PCT", "0.5"))
TREND_DECLINE_THRESHOLD_PCT = float(os.getenv("STORAGECOST_TREND_DECLINE_PCT", "-0.5"))

# ---------------------------------------------------------------------
# Definition files (disk SKU table, ANF service levels)
# ---------------------------------------------------------------------
DEFINITIONS_DIR = Path(
    os.getenv(
        "STORAGECOST_DEFINITIONS_DIR",
        str(Path(__file__).resolve().parent / "calculators" / "definitions"),
    )
)
