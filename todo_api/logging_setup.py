import logging
import sys
from pathlib import Path
from typing import Optional, Union

APP_LOGGER = "todo_api"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - all todo_api logs pass
    - uvicorn access lines and other third-party logs only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == APP_LOGGER or record.name.startswith(APP_LOGGER + "."):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: Union[str, int] = logging.INFO, log_dir: Optional[Union[str, Path]] = None) -> None:
    """
    Configure the root logger once, before the app starts serving.

    Console gets the filtered stream; when ``log_dir`` is given every record
    also goes to ``<log_dir>/todo_api.log``.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / "todo_api.log"), encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
