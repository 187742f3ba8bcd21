"""
Bullion Desk - Logging
Single process-wide logger; components tag their messages ([Prices], [News], ...).
"""
import logging

from bullion_desk.core.config import LOG_LEVEL

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("bullion_desk")
