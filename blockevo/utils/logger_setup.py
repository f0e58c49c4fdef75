"""
Logging setup for blockevo runs.

Colored console output plus a rotating log file per run, both through loguru.
"""

from __future__ import annotations

from datetime import datetime, timezone
import os
import sys

from loguru import logger

__all__ = ["setup_logger"]

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logger(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    enable_colors: bool = True,
) -> str:
    """
    Send loguru output to the console and to a timestamped file.

    Args:
        log_dir: Directory for log files
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation: Log rotation policy (e.g., "50 MB", "1 day")
        retention: Log retention policy (e.g., "30 days", "1 month")
        enable_colors: Whether to color console output when attached to a TTY

    Returns:
        Path to the run's log file
    """
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"blockevo_{timestamp}.log")

    logger.remove()

    colorize = enable_colors and sys.stdout.isatty()
    if colorize:
        console_format = (
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<yellow>{line}</yellow> | "
            "<level>{message}</level>"
        )
    else:
        console_format = "{time:HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}"

    logger.add(
        lambda msg: print(msg, end=""),
        level=level,
        format=console_format,
        colorize=colorize,
        backtrace=True,
        diagnose=True,
    )
    logger.add(
        log_file,
        level=level,
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        backtrace=True,
        diagnose=True,
    )

    logger.debug("Logger initialized | level={}, colors={}, file={}", level, colorize, log_file)
    return log_file
