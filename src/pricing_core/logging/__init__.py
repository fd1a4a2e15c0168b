"""Structured logging."""

from pricing_core.logging.setup import block_context, get_logger, setup_logging, stringify_values

__all__ = ["block_context", "get_logger", "setup_logging", "stringify_values"]
