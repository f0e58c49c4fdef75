from __future__ import annotations

from blockevo.utils.logger_setup import setup_logger

__all__ = ["setup_logger"]
