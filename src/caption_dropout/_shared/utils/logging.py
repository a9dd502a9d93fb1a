import logging


def initialize_logging(logger_name: str, verbose: bool = False) -> logging.Logger:
    """Configure logging.

    Logging is configured at INFO level, or DEBUG level if `verbose` is set. The caption-dropout library modules only
    emit DEBUG records, so a non-verbose run only shows the messages of the calling script.

    Args:
        logger_name (str): The name of the logger to return.
        verbose (bool, optional): If True, log at DEBUG level. Defaults to False.

    Returns:
        logging.Logger: The configured logger.
    """
    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%m/%d/%Y %H:%M:%S",
        level=logging.DEBUG if verbose else logging.INFO,
    )
    return logging.getLogger(logger_name)
