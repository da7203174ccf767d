"""Tests for the content scraper."""

import httpx
import pendulum
import pytest

from conftest import RecordingTransport
from newsdesk.config import ScraperConfig
from newsdesk.ingestion import extraction
from newsdesk.ingestion.scraper import ContentScraper

ARTICLE_URL = "https://news.test/ekonomi/faiz-karari"

ARTICLE_HTML = """
<html>
<head>
  <title>Faiz kararı açıklandı - Örnek Haber</title>
  <meta name="description" content="Merkez Bankası politika faizini sabit tuttu.">
  <meta property="og:image" content="/img/faiz.jpg">
</head>
<body>
  <nav><a href="/">Anasayfa</a><a href="/ekonomi">Ekonomi</a></nav>
  <h1 class="news-title">Merkez Bankası politika faizini sabit tuttu</h1>
  <span class="author">Ayşe Yılmaz</span>
  <span class="publish-date">Son Güncelleme : 15.06.2025 - 17:00</span>
  <div class="haber-detay">
    <p>Merkez Bankası bugün yaptığı açıklamada politika faizini yüzde elli seviyesinde sabit tuttuğunu duyurdu.</p>
    <p>Kurul, enflasyon beklentilerindeki iyileşmenin sürmesi halinde sıkı para politikasının gevşetilebileceğini belirtti.</p>
    <p>Ekonomistler kararın beklentilerle uyumlu olduğunu ve yılın ikinci yarısında indirim gelebileceğini söyledi.</p>
  </div>
  <div class="related-news"><a href="/1">Benzer haber</a></div>
  <footer>Tüm hakları saklıdır</footer>
</body>
</html>
"""


def html_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, text=ARTICLE_HTML, headers={"Content-Type": "text/html; charset=utf-8"})


class TestScrape:
    @pytest.mark.asyncio
    async def test_extracts_article(self):
        transport = RecordingTransport(html_response)
        scraper = ContentScraper.from_config(ScraperConfig(), transport=transport)

        result = await scraper.scrape(ARTICLE_URL)

        assert result.success
        assert result.status_code == 200
        content = result.content
        assert content.title == "Merkez Bankası politika faizini sabit tuttu"
        assert content.summary == "Merkez Bankası politika faizini sabit tuttu."
        assert content.author == "Ayşe Yılmaz"
        assert content.image_url == "https://news.test/img/faiz.jpg"
        assert content.published_raw == "Son Güncelleme : 15.06.2025 - 17:00"
        assert content.published_at == pendulum.datetime(2025, 6, 15, 17, 0, tz="Europe/Istanbul")
        assert content.body.count("\n\n") == 2
        assert "Benzer haber" not in content.body
        assert "Tüm hakları" not in content.body

        request = transport.requests[0]
        assert request.headers["Accept-Language"].startswith("tr-TR")
        assert "Chrome" in request.headers["User-Agent"]

    @pytest.mark.asyncio
    async def test_score_not_serialized(self):
        scraper = ContentScraper(transport=httpx.MockTransport(html_response))

        result = await scraper.scrape(ARTICLE_URL)

        assert result.content.extraction_score > 0
        assert "extraction_score" not in result.content.model_dump()

    @pytest.mark.asyncio
    async def test_not_found(self):
        scraper = ContentScraper(transport=httpx.MockTransport(lambda request: httpx.Response(404)))

        result = await scraper.scrape(ARTICLE_URL)

        assert not result.success
        assert result.status_code == 404
        assert result.error_kind == "transport"
        assert result.content is None

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        result = await ContentScraper(transport=httpx.MockTransport(handler)).scrape(ARTICLE_URL)

        assert not result.success
        assert result.error_kind == "transport"
        assert "connection refused" in result.error

    @pytest.mark.asyncio
    async def test_empty_page_is_parse_failure(self, monkeypatch):
        monkeypatch.setattr(extraction.trafilatura, "extract", lambda document, **kwargs: None)
        scraper = ContentScraper(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html><body></body></html>"))
        )

        result = await scraper.scrape(ARTICLE_URL)

        assert not result.success
        assert result.error_kind == "parse"
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_untitled_page(self):
        html = ARTICLE_HTML.replace("<title>Faiz kararı açıklandı - Örnek Haber</title>", "").replace(
            '<h1 class="news-title">Merkez Bankası politika faizini sabit tuttu</h1>', ""
        )
        scraper = ContentScraper(transport=httpx.MockTransport(lambda request: httpx.Response(200, text=html)))

        result = await scraper.scrape(ARTICLE_URL)

        assert result.success
        assert result.content.title == "Untitled"

    @pytest.mark.asyncio
    async def test_timeout_override(self):
        transport = RecordingTransport(html_response)
        scraper = ContentScraper(timeout=30.0, transport=transport)

        result = await scraper.scrape(ARTICLE_URL, timeout_ms=2500)

        assert result.success
        assert transport.requests[0].extensions["timeout"]["read"] == 2.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout_ms", [0, -100])
    async def test_non_positive_timeout_rejected(self, timeout_ms):
        transport = RecordingTransport(html_response)
        scraper = ContentScraper(transport=transport)

        result = await scraper.scrape(ARTICLE_URL, timeout_ms=timeout_ms)

        assert not result.success
        assert result.error_kind == "validation"
        assert transport.requests == []


class TestScrapeAll:
    @pytest.mark.asyncio
    async def test_keeps_input_order(self):
        def handler(request):
            if request.url.path == "/yok":
                return httpx.Response(404)
            return html_response(request)

        scraper = ContentScraper(max_concurrent=2, transport=httpx.MockTransport(handler))
        urls = [ARTICLE_URL, "https://news.test/yok", "https://news.test/ikinci"]

        results = await scraper.scrape_all(urls)

        assert [r.url for r in results] == urls
        assert [r.success for r in results] == [True, False, True]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await ContentScraper().scrape_all([]) == []
