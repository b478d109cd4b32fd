from logging import DEBUG, FileHandler, Formatter, Logger, StreamHandler, getLogger
from urllib.parse import quote

__all__ = ["get_logger", "create_logger", "enable_debug", "mask_secret"]

DEFAULT_LOGGER_NAME = "mondrian_cli"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(message)s"
SECRET_MASK = "****"
logger: Logger | None = None


def get_logger(path: str | None = None, format_: str | None = None,
               name: str | None = None) -> Logger:
    """Get the default mondrian-cli logger"""
    global logger

    if logger:
        return logger
    else:
        return create_logger(path, format_, name)


def create_logger(path: str | None = None, format_: str | None = None,
                  name: str | None = None) -> Logger:
    """Create a default logger"""
    global logger
    logger = getLogger(name or DEFAULT_LOGGER_NAME)
    logger.propagate = False

    if not logger.handlers:
        formatter = Formatter(fmt=format_ or DEFAULT_FORMAT)

        handler: StreamHandler | FileHandler

        if path:
            handler = FileHandler(path)
        else:
            handler = StreamHandler()

        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def enable_debug() -> None:
    get_logger().setLevel(DEBUG)


def mask_secret(text: str, secret: str | None) -> str:
    """Replace every occurrence of `secret` in `text` with a mask."""
    if not secret:
        return text
    return text.replace(quote(secret, safe=""), SECRET_MASK).replace(secret, SECRET_MASK)
