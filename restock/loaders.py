import logging
from pathlib import Path
from typing import Callable
import requests

from . import settings
from .errors import LoadError
from .utils import read_text

logger = logging.getLogger(__name__)

# A loader returns the raw CSV text of one source or raises LoadError.
TextLoader = Callable[[], str]


def file_loader(path: Path) -> TextLoader:
    def load() -> str:
        return read_text(path)

    return load


def text_loader(text: str) -> TextLoader:
    """For content that is already in memory (uploads, tests)."""

    def load() -> str:
        return text

    return load


def fetch_text(url: str, timeout: float | None = None) -> str:
    """GETs `url`; transport errors and non-2xx responses become LoadError."""
    try:
        response = requests.get(url, timeout=timeout or settings.MAPPING_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise LoadError(f"Failed to load {url.rsplit('/', 1)[-1]}: {e}") from e
    return response.text


def mapping_loader() -> TextLoader:
    """The SKU mapping lives at a fixed location: MAPPING_URL if set, else MAPPING_PATH."""
    if settings.MAPPING_URL:
        url = settings.MAPPING_URL

        def load() -> str:
            logger.info(f"Fetching SKU mapping from {url}")
            return fetch_text(url)

        return load

    return file_loader(settings.MAPPING_PATH)
