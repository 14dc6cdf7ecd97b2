"""File sink for generated catalog documents."""
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


class FileSink:
    """Writes generated documents into a directory under a suggested filename."""

    def __init__(self, directory: str = ".", encoding: str = "utf-8"):
        self.directory = Path(directory)
        self.encoding = encoding

    def write(self, text: str, filename: str) -> Path:
        """
        Write a full document, replacing any previous copy.

        Args:
            text: Document text
            filename: Suggested filename (directory parts are ignored)

        Returns:
            Path that was written
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / Path(filename).name

        # Target is replaced whole
        tmp = path.with_name(path.name + ".tmp")
        try:
            tmp.write_text(text, encoding=self.encoding)
            tmp.replace(path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

        logger.info(f"Saved {len(text)} chars to {path}")
        return path

    def __call__(self, text: str, filename: str) -> Path:
        return self.write(text, filename)
