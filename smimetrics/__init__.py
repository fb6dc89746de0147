"""Parse exporter metrics into device records, aggregate them and assess cluster trends and health."""

__version__ = "0.6.1"

__all__ = ["types", "aggregator", "metric_handlers", "metrics_parser", "coordinator"]