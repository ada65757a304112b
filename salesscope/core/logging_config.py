import logging

from .config import get_settings


def configure_logging(level: str = None) -> None:
    """Configure root logging for the API process"""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # SQL statements are logged by the engine itself when db_echo is set
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
