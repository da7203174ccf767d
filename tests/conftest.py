"""Shared test helpers."""

from typing import Callable, List

import httpx


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps the requests it served."""

    def __init__(self, handler: Callable) -> None:
        self.requests: List[httpx.Request] = []

        def record(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


RSS_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Örnek Haber</title>
    <link>https://news.test/</link>
    <description>Son dakika haberleri</description>
    {items}
  </channel>
</rss>
"""


def rss_item(title: str, link: str, description: str = "", pub_date: str = "", guid: str = "") -> str:
    parts = [f"<title>{title}</title>", f"<link>{link}</link>"]
    if description:
        parts.append(f"<description>{description}</description>")
    if pub_date:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    if guid:
        parts.append(f"<guid>{guid}</guid>")
    return "<item>" + "".join(parts) + "</item>"


def rss_feed(*items: str) -> bytes:
    return RSS_TEMPLATE.format(items="\n".join(items)).encode("utf-8")
