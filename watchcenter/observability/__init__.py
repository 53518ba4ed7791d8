"""
Observability for Disaster Watch alerting: logging, metrics and HTTP endpoints.
"""
