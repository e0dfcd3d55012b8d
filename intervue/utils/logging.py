"""
Logging utilities for the interview pipeline.
"""
import os
import logging


def setup_logging(log_file_path: str, console_level: str = "WARNING") -> str:
    """
    Set up detailed logging to file and terse logging to the console.

    Args:
        log_file_path: Full path to the log file
        console_level: Level name for the console handler

    Returns:
        Path to the log file
    """
    # Create the log directory if the path has one
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    # Clear any existing handlers
    logging.getLogger().handlers.clear()

    # File handler keeps everything, appended across sessions
    file_handler = logging.FileHandler(log_file_path, mode='a')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s'))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, console_level.upper(), logging.WARNING))
    console_handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return log_file_path
