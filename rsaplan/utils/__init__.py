"""
Utility modules for rsaplan.

Example:
    from rsaplan.utils.logging_config import get_logger
"""

from rsaplan.utils.logging_config import get_logger, setup_logger

__all__ = [
    "setup_logger",
    "get_logger",
]
