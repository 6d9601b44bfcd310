import logging

LOG_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'


def setup_logging(level: str = "INFO") -> None:
    """Send application logs to stderr in one consistent format"""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_hotel_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._hotel_handler = True
        root.addHandler(handler)
