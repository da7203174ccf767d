"""Article storage collaborators used by the pipeline."""

from .base import ArticleStore
from .jsonl import JsonlArticleStore
from .memory import InMemoryArticleStore
from .models import StoredArticle

__all__ = ["ArticleStore", "InMemoryArticleStore", "JsonlArticleStore", "StoredArticle"]
