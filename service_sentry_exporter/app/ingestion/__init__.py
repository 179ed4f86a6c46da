"""
Ingestion package.

Turns Sentry API responses into exporter samples:

- directory: resolves numeric project ids to slugs once at startup.
- collector: per-scrape concurrent fetch of the errors and transactions
  families, joined before the samples are handed to the exporter.

Nothing here is persisted between scrapes.
"""
