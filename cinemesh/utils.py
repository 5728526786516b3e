"""
Utility functions for Cinemesh.

Provides logging setup, rate limiting, progress bars, slug and form-value
parsing, and console display helpers.
"""

import logging
import re
import sys
import time
import unicodedata
from collections import deque
from datetime import date, datetime
from pathlib import Path
from threading import Lock
from typing import Iterable, Iterator, Optional, TypeVar

from tqdm import tqdm

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


def setup_logger(
    name: str,
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    console_output: bool = True,
) -> logging.Logger:
    """
    Configure a component logger writing to logs/<name>_<YYYYMMDD>.log.

    Console output is limited to warnings. Calling this again for a name
    that already has handlers returns the existing logger untouched.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    directory = Path(log_dir) if log_dir is not None else Path.cwd() / "logs"
    directory.mkdir(parents=True, exist_ok=True)

    handlers = [logging.FileHandler(directory / f"{name}_{date.today():%Y%m%d}.log")]
    if console_output:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.WARNING)
        handlers.append(console)

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


class RateLimiter:
    """
    Thread-safe sliding-window limiter: at most N calls in any one-second window.
    """

    WINDOW = 1.0

    def __init__(self, requests_per_second: int = 35):
        self.requests_per_second = requests_per_second
        self.timestamps: deque = deque()
        self.lock = Lock()

    def _expire(self, now: float) -> None:
        while self.timestamps and now - self.timestamps[0] > self.WINDOW:
            self.timestamps.popleft()

    def acquire(self) -> None:
        """Block until another request fits in the window, then record it."""
        with self.lock:
            now = time.time()
            self._expire(now)
            if len(self.timestamps) >= self.requests_per_second:
                delay = self.WINDOW - (now - self.timestamps[0])
                if delay > 0:
                    time.sleep(delay)
                now = time.time()
                self._expire(now)
                # Sleep may be mocked or cut short; never grow past the limit
                while len(self.timestamps) >= self.requests_per_second:
                    self.timestamps.popleft()
            self.timestamps.append(now)


def progress_bar(
    iterable: Iterable[T],
    total: Optional[int] = None,
    desc: str = "Processing",
    unit: str = "items",
    disable: bool = False,
) -> Iterator[T]:
    """Wrap an iterable with a tqdm progress bar."""
    return tqdm(
        iterable,
        total=total,
        desc=desc,
        unit=unit,
        disable=disable,
        ncols=100,
        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]",
    )


def slugify(value: str) -> str:
    """
    Build a URL-safe slug from a title.

    "The Lord of the Rings: The Return of the King" ->
    "the-lord-of-the-rings-the-return-of-the-king"

    Titles with no Latin letters or digits give "", so callers supply
    their own fallback.
    """
    if not value:
        return ""
    folded = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _SLUG_INVALID.sub("-", folded.lower()).strip("-")


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string.

    Returns None for empty input; raises ValueError for malformed input.
    """
    if not value:
        return None
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_optional_int(value: Optional[str]) -> Optional[int]:
    """Parse an optional integer form value. Empty input yields None."""
    if value is None or str(value).strip() == "":
        return None
    return int(str(value).strip())


def format_number(n: int) -> str:
    return f"{n:,}"


def print_header(text: str, char: str = "=", width: int = 60) -> None:
    rule = char * width
    print(f"{rule}\n{text.center(width)}\n{rule}")


def print_status_table(data: dict, title: str = "Status") -> None:
    """Print label/value rows under a title, labels padded to one column."""
    width = max((len(str(label)) for label in data), default=8) + 2
    print(f"\n{title}\n{'-' * 40}")
    for label, value in data.items():
        print(f"  {str(label):<{width}}: {value}")
    print()


def confirm_action(message: str, default: bool = False) -> bool:
    """Ask a yes/no question on stdin; Enter picks the default."""
    hint = "Y/n" if default else "y/N"
    answer = input(f"{message} [{hint}]: ").strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")
