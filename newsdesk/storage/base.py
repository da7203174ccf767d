"""Storage protocol."""

from typing import List, Protocol, Tuple

from .models import StoredArticle


class ArticleStore(Protocol):
    """What the pipeline needs from storage."""

    def url_exists(self, url: str) -> bool:
        """Whether an article with this URL was already saved."""
        ...

    def recent_embeddings(self, limit: int) -> List[Tuple[str, List[float]]]:
        """(article id, vector) pairs of the most recently saved articles, newest first."""
        ...

    def save(self, article: StoredArticle) -> str:
        """Save an article and return its id."""
        ...
