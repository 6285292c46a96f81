"""
Known historical correlation table.
Loaded from YAML so the table can be refreshed without a code change.
"""

import logging
import math
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


class KnownCorrelationsError(Exception):
    """Raised when the correlation table cannot be loaded."""
    pass


def load_known_correlations(config_path: Optional[str] = None) -> Dict[str, float]:
    """
    Load the known correlations table from YAML.

    Expected shape:
        correlations:
          AAPL-MSFT: 0.78

    Args:
        config_path: Path to the YAML file (default: KNOWN_CORRELATIONS_PATH
            or ./config/known_correlations.yml)

    Returns:
        Mapping of 'A-B' pair keys to correlations in [-1, 1]

    Raises:
        KnownCorrelationsError: If the file is missing or malformed
    """
    if config_path is None:
        config_path = os.getenv('KNOWN_CORRELATIONS_PATH', './config/known_correlations.yml')

    config_file = Path(config_path)
    if not config_file.exists():
        raise KnownCorrelationsError(f"Known correlations file not found: {config_path}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise KnownCorrelationsError(f"Failed to parse known correlations: {e}") from e

    if not isinstance(config, dict) or not isinstance(config.get('correlations'), dict):
        raise KnownCorrelationsError("Known correlations config missing 'correlations' section")

    table = {}
    for pair, value in config['correlations'].items():
        if not isinstance(pair, str) or pair.count('-') != 1:
            raise KnownCorrelationsError(f"Pair key must look like 'A-B', got {pair!r}")

        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise KnownCorrelationsError(f"Correlation for {pair} must be numeric, got {value!r}")

        if not -1 <= value <= 1:
            raise KnownCorrelationsError(f"Correlation for {pair} out of range: {value}")

        table[pair.upper()] = float(value)

    logger.info(f"Loaded {len(table)} known correlations from {config_path}")
    return table
