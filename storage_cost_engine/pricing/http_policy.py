import random
import time

from ..config import HTTP_MAX_RETRIES, HTTP_RETRY_BASE_DELAY

# Throttling and transient server faults. Everything else fails fast.
RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class HttpRetryPolicy:
    def __init__(self, max_retries=HTTP_MAX_RETRIES, base_delay=HTTP_RETRY_BASE_DELAY, max_delay=60.0, sleep=time.sleep):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep

    def should_retry(self, status_code, attempt):
        return status_code in RETRYABLE_STATUS and attempt < self.max_retries

    def delay_for(self, attempt, retry_after=None):
        if retry_after:
            try:
                return min(self.max_delay, float(retry_after))
            except (TypeError, ValueError):
                pass
        delay = min(self.max_delay, self.base_delay * (2 ** attempt))
        return delay + random.uniform(0, delay * 0.2)

    def wait(self, attempt, retry_after=None):
        self._sleep(self.delay_for(attempt, retry_after))
