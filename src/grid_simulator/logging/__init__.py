"""Structured logging for the grid simulator."""

from grid_simulator.logging.logger import get_logger, setup_logging, log_context

__all__ = ["get_logger", "setup_logging", "log_context"]
