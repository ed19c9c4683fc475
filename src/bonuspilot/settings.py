"""
BonusPilot - Settings
---------------------
Resolves file locations and logging level from the environment, falling back
to the YAML files shipped next to the code and the repo's data/ folder.
"""

import logging
import os

PACKAGE_DIR = os.path.dirname(__file__)
BASE_DIR = os.path.dirname(os.path.dirname(PACKAGE_DIR))

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def data_dir():
    return os.getenv("BONUSPILOT_DATA_DIR", os.path.join(BASE_DIR, "data"))


def rules_path():
    return os.getenv("BONUSPILOT_RULES_PATH", os.path.join(PACKAGE_DIR, "issuer_rules.yaml"))


def keywords_path():
    return os.getenv("BONUSPILOT_KEYWORDS_PATH", os.path.join(PACKAGE_DIR, "search_keywords.yaml"))


def catalog_path():
    return os.path.join(data_dir(), "catalog.yaml")


def user_values_path():
    return os.path.join(data_dir(), "user_values.yaml")


def wallet_path():
    return os.path.join(data_dir(), "wallet.csv")


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once; BONUSPILOT_LOG_LEVEL wins over the default."""
    level_name = (level or os.getenv("BONUSPILOT_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
