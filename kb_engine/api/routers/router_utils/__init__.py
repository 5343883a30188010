"""
Router utility functions.

Contains helpers extracted from router endpoints to keep them clean.
"""

from kb_engine.api.routers.router_utils.error_utils import (
    request_validation_handler,
    status_code_for,
    to_http_exception,
)

__all__ = ["request_validation_handler", "status_code_for", "to_http_exception"]
