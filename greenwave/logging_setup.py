import logging
from typing import Union

from greenwave.domain import config

def setup_logging(level: Union[int, str, None] = None) -> None:
    """Apply one console format to the root logger; call once at startup."""
    root = logging.getLogger()
    root.setLevel(level if level is not None else config.LOG_LEVEL)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))

    root.handlers.clear()
    root.addHandler(handler)
