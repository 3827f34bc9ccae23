"""Logging setup shared by the CLI entry points."""

from __future__ import annotations

import logging


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Initialise the root logger once.

    INFO by default, DEBUG with ``verbose``. ``force=True`` reconfigures an
    already initialised root logger (tests, long-running ``run`` after reload).
    """

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
    # httpx logs every request at INFO; one per heartbeat is noise.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
