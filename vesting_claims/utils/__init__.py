"""
Utilities package initialization.
"""
from .logger import bind_run_context, get_logger, log_business_event, log_performance, setup_logging
from .addresses import address_key, checksum, is_valid_address, same_address

__all__ = [
    "bind_run_context",
    "get_logger",
    "log_business_event",
    "log_performance",
    "setup_logging",
    "address_key",
    "checksum",
    "is_valid_address",
    "same_address",
]
