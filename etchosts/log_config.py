import logging
from typing import Optional

from textual.logging import TextualHandler


def setup_logging(verbose: bool = False, log_file: Optional[str] = "etchosts.log") -> None:
    """Configure logging for the entire application.

    Records go to ``log_file`` and to the Textual devtools console. No stream
    handler is installed, it would draw over the terminal UI.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_level = logging.DEBUG if verbose else logging.INFO
    root_logger.setLevel(log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    textual_handler = TextualHandler()
    textual_handler.setFormatter(formatter)
    root_logger.addHandler(textual_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger("etchosts").setLevel(log_level)
    logging.getLogger("etchosts").debug("Verbose logging enabled")
