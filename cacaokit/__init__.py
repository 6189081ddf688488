"""Building blocks for CACAO playbook steps: models, HTTP requests, STIX comparisons, clock and environment lookup."""

__version__ = "0.1.0"
__all__ = ["clock", "comparison", "env", "http_request", "models"]