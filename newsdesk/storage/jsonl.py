"""Append-only JSON-lines article store."""

import logging
from pathlib import Path
from typing import List, Tuple

from pydantic import ValidationError

from .memory import InMemoryArticleStore
from .models import StoredArticle

logger = logging.getLogger(__name__)


class JsonlArticleStore(InMemoryArticleStore):
    """Articles appended to a ``.jsonl`` file, indexed in memory."""

    def __init__(self, path: Path) -> None:
        """Open the store, loading articles saved by earlier runs."""
        super().__init__()
        self.path = path
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return

        with open(self.path, encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    article = StoredArticle.model_validate_json(line)
                except ValidationError as e:
                    logger.warning("Skipping invalid article on line %s of %s: %s", line_number, self.path, e)
                    continue
                super().save(article)

    def save(self, article: StoredArticle) -> str:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(article.model_dump_json() + "\n")
        return super().save(article)
