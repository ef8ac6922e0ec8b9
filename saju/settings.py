"""
Runtime configuration.

Values are read from the environment once, at import time:

    SAJU_TIMEZONE          wall-clock zone of birth inputs and of "today"
                           (default Asia/Seoul)
    SAJU_SOLAR_TERMS_PATH  JSON table written by saju.generate_solar_terms;
                           when unset, terms are generated lazily per year
    SAJU_LOG_LEVEL         log level for the command line tools (default WARNING)
"""

import logging
import os
from pathlib import Path
from typing import Optional


DEFAULT_TIMEZONE = os.getenv("SAJU_TIMEZONE", "Asia/Seoul")

_solar_terms_path = os.getenv("SAJU_SOLAR_TERMS_PATH", "").strip()
SOLAR_TERMS_PATH: Optional[Path] = Path(_solar_terms_path) if _solar_terms_path else None

LOG_LEVEL = os.getenv("SAJU_LOG_LEVEL", "WARNING").upper()

# Birth years accepted from users
SUPPORTED_YEAR_MIN = 1900
SUPPORTED_YEAR_MAX = 2100

# Years covered by the solar term table (one extra year in front so that
# early-January dates of SUPPORTED_YEAR_MIN can see the previous 大雪)
SOLAR_TERM_YEAR_START = 1899
SOLAR_TERM_YEAR_END = 2100

# Maximum accepted error of a generated solar term, in degrees of longitude
CONVERGENCE_TOLERANCE_DEG = 0.01


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging for the command line entry points."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
