import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single console handler on the root logger.

    Safe to call more than once (e.g. uvicorn reload); existing handlers
    installed here are replaced rather than duplicated.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_inventory_handler", False):
            root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._inventory_handler = True
    root.addHandler(handler)
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
