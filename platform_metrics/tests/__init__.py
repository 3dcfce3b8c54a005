'''
Platform Metrics Backend Test Suite

Test Modules:
-------------
- test_rate_limiter.py: Token-bucket refill, waiting, validation
- test_http.py: Backend proxy client errors, fallback host, lifecycle
- test_adapters.py: All six provider adapters
  - Mock mode makes no proxy calls and takes no tokens
  - Live transforms, fallback on error / malformed / empty / timeout
  - Chart bucket counts and labels, seeded determinism
  - OAuth URLs, link probes, account enumeration, registry lifecycle
- test_normalization.py: Formatting helpers and keyed normalization
- test_attribution.py: Every attribution model and edge case
- test_insights.py: Insight thresholds, ranking, forecasting, anomalies
- test_export.py: CSV / Excel / branded HTML export
- test_api.py: FastAPI routes via TestClient

Run with:
    pytest platform_metrics/tests
'''
