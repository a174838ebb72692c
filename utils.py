# utils.py
"""
Start-up helpers shared by the viewer and the tests: logging setup and
configuration loading.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any

from config import EngineConfig

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs: the full config; reads "logging" -> "level", "format",
#     "log_file". An empty "log_file" disables the file handler.
#   - Side Effects: replaces the root logger's handlers with a console
#     handler and, optionally, a rotating file handler (1 MB x 5).
#
# load_config(path: str) -> Dict[str, Any]:
#   - Raises: FileNotFoundError, json.JSONDecodeError (logged first).
#
# load_engine_config(config: Dict[str, Any]) -> EngineConfig:
#   - Builds and validates the engine configuration from the "engine"
#     section. Raises ValueError on invalid values.

def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the root logger from the "logging" section of the config.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/coin_pile.log')

    logger = logging.getLogger()
    logger.setLevel(log_level)
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
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=1024*1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level {log_level}, log file: {log_file_path or 'disabled'}")

def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
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
    logging.info("Configuration loaded successfully.")
    return config

def load_engine_config(config: Dict[str, Any]) -> EngineConfig:
    """Builds the EngineConfig from the "engine" section, defaults for the rest."""
    engine_config = EngineConfig.from_dict(config.get('engine', {}))
    logging.debug(f"Engine configuration: {engine_config}")
    return engine_config
