# utils.py
"""
Utility functions for the spinning top arena.

This module provides the configuration and logging helpers shared by the
entry point and the tests. They do not belong to a specific domain like
physics, telemetry or rendering.
"""
import copy
import logging
import logging.handlers
import json
import os
from typing import Dict, Any

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys.
#   - Side Effects: Configures the root Python logger with a console handler
#     and, unless log_file is empty, a rotating file handler.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Outputs: The JSON config merged over DEFAULT_CONFIG, so every section
#     and key the application reads is present.
#   - Side Effects: Logs and re-raises FileNotFoundError / JSONDecodeError.

DEFAULT_CONFIG: Dict[str, Any] = {
    "simulation_parameters": {
        "seed": None,
        "arena_radius": 300,
        "arena_margin": 50,
        "top_radius": 12,
        "top_mass": 1.0,
        "gravity_strength": 0.001,
        "friction": 0.98,
        "velocity_decay": 0.995,
        "restitution": 0.8,
    },
    "run_control": {
        "max_steps": 0,
        "log_throttle_steps": 300,
        "profile": False,
    },
    "visualization": {
        "fps": 60,
        "show_velocity_arrows": True,
    },
    "telemetry": {
        "enabled": True,
        "sink": "log",
        "prefix": "/stfs",
        "collision_interval_ms": 50,
        "state_interval_ms": 100,
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "log_file": "logs/arena.log",
    },
}


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to the console and, if a log file is configured, to a
    rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/arena.log')

    # Get the root logger
    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        # Rotates when the log reaches 1MB, keeps 5 backup logs.
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=1024*1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path or '(console only)'}")


def merge_config(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merges `overrides` over a copy of `defaults`."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file and fills in missing defaults."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise
    if not isinstance(config, dict):
        msg = f"Configuration in {path} must be a JSON object, got {type(config).__name__}."
        logging.error(msg)
        raise ValueError(msg)
    logging.info("Configuration loaded successfully.")
    return merge_config(DEFAULT_CONFIG, config)
