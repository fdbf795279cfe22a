"""
Print boundary: hand a rendered invoice to the system browser.

The document carries its own `window.print()` on load, so opening it is all
that is needed to bring up the print dialog.
"""

import logging
import os
import tempfile
import webbrowser
from pathlib import Path
from typing import Callable, Optional


logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = "Pop-up diblokir. Mohon izinkan pop-up untuk generate invoice."


class PrintSurfaceUnavailable(RuntimeError):
    """The browser / print window could not be opened."""

    def __init__(self, message: str = BLOCKED_MESSAGE):
        super().__init__(message)


def send_to_print(
    html: str,
    opener: Callable[[str], bool] = webbrowser.open,
    output_dir: Optional[str] = None,
) -> Path:
    """
    Write `html` to a fresh file and open it. Returns the file path.

    Raises PrintSurfaceUnavailable if the opener refuses or fails; the file
    is removed in that case.
    """
    fd, name = tempfile.mkstemp(prefix="invoice-", suffix=".html", dir=output_dir)
    path = Path(name)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(html)

    try:
        opened = opener(path.resolve().as_uri())
    except webbrowser.Error as e:
        path.unlink(missing_ok=True)
        logger.warning("Print surface failed: %s", e)
        raise PrintSurfaceUnavailable() from e

    if not opened:
        path.unlink(missing_ok=True)
        logger.warning("Print surface refused to open %s", path.name)
        raise PrintSurfaceUnavailable()

    logger.info("Invoice sent to print surface: %s", path)
    return path
