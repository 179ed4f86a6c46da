"""
Exporters package.

Renders collected samples for the scrape endpoint. Only the Prometheus text
format is produced.
"""
