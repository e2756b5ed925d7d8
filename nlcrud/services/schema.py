import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def load_schema(path) -> str:
    """Read the schema description that grounds every prompt.

    Called once from the application lifespan. An unreadable or empty file
    raises, which aborts startup.
    """
    schema_path = Path(path)
    text = schema_path.read_text(encoding="utf-8")
    if not text.strip():
        raise ValueError(f"Schema file is empty: {schema_path}")
    logger.info("Loaded schema from %s (%d chars)", schema_path, len(text))
    return text
