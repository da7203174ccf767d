"""In-memory article store."""

from typing import Dict, List, Tuple

from .models import StoredArticle


class InMemoryArticleStore:
    """Keep saved articles in a dict, in insertion order."""

    def __init__(self) -> None:
        self.articles: Dict[str, StoredArticle] = {}
        self._urls: Dict[str, str] = {}

    def url_exists(self, url: str) -> bool:
        return url in self._urls

    def recent_embeddings(self, limit: int) -> List[Tuple[str, List[float]]]:
        pairs = [(a.id, a.embedding) for a in reversed(self.articles.values()) if a.embedding]
        return pairs[:limit]

    def save(self, article: StoredArticle) -> str:
        self.articles[article.id] = article
        self._urls[article.url] = article.id
        return article.id

    def __len__(self) -> int:
        return len(self.articles)
