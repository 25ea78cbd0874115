"""
MangaSpider 单元测试（mock aiohttp）
"""
import unittest
import asyncio
from unittest.mock import AsyncMock

from core.errors import FetchError, InvalidBookId
from fakes import make_config, make_response, make_session
from spiders.manga_spider import MangaSpider

TITLE_URL = "https://mangapill.com/manga/2"
CANONICAL_URL = "https://mangapill.com/manga/2/example-manga"
TITLE_HTML = """
<h1>Example Manga</h1>
<div id="chapters">
  <a href="/chapters/2-10002000/example-manga-chapter-2" title="Example Manga Chapter 2">2</a>
  <a href="/chapters/2-10001000/example-manga-chapter-1" title="Example Manga Chapter 1">1</a>
</div>
"""


class TestMangaSpider(unittest.TestCase):
    """作品页爬取"""

    def setUp(self):
        self.config = make_config()

    def spider_for(self, response):
        self.session = make_session({TITLE_URL: response})
        return MangaSpider(self.config, session=self.session)

    def test_resolve_title(self):
        spider = self.spider_for(make_response(text=TITLE_HTML, url=CANONICAL_URL))
        self.assertEqual(asyncio.run(spider.resolve_title(TITLE_URL)), CANONICAL_URL)

    def test_numeric_slug_raises_invalid_book_id(self):
        """未识别的ID不会跳转，最后一段仍是数字"""
        spider = self.spider_for(make_response(text="<html></html>"))
        with self.assertRaises(InvalidBookId):
            asyncio.run(spider.resolve_title(TITLE_URL))

    def test_http_error_raises_fetch_error(self):
        spider = self.spider_for(make_response(status=500))
        with self.assertRaises(FetchError):
            asyncio.run(spider.fetch_chapter_list(TITLE_URL))
        self.assertEqual(spider.stats['requests_failed'], 1)

    def test_undecodable_body_raises_fetch_error(self):
        response = make_response(url=CANONICAL_URL)
        response.text = AsyncMock(side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
        spider = self.spider_for(response)
        with self.assertRaises(FetchError):
            asyncio.run(spider.fetch_chapter_list(TITLE_URL))
        self.assertEqual(spider.stats['requests_failed'], 1)

    def test_connection_error_raises_fetch_error(self):
        spider = MangaSpider(self.config, session=make_session({}))
        with self.assertRaises(FetchError):
            asyncio.run(spider.fetch_chapter_list(TITLE_URL))

    def test_fetch_chapter_list(self):
        spider = self.spider_for(make_response(text=TITLE_HTML, url=CANONICAL_URL))
        chapters = asyncio.run(spider.fetch_chapter_list(TITLE_URL))
        self.assertEqual([c.title for c in chapters], ["example-manga-chapter-0001", "example-manga-chapter-0002"])

    def test_title_page_fetched_once(self):
        spider = self.spider_for(make_response(text=TITLE_HTML, url=CANONICAL_URL))

        async def run():
            await spider.fetch_chapter_list(TITLE_URL)
            await spider.resolve_title(TITLE_URL)
            return await spider.fetch_display_name(TITLE_URL)

        self.assertEqual(asyncio.run(run()), "Example Manga")
        self.assertEqual(self.session.get.call_count, 1)

    def test_display_name_missing_returns_none(self):
        spider = self.spider_for(make_response(text="<div></div>", url=CANONICAL_URL))
        self.assertIsNone(asyncio.run(spider.fetch_display_name(TITLE_URL)))

    def test_slug_of(self):
        self.assertEqual(MangaSpider.slug_of(CANONICAL_URL), "example-manga")
        self.assertEqual(MangaSpider.slug_of(CANONICAL_URL + "/"), "example-manga")
        self.assertEqual(MangaSpider.slug_of(TITLE_URL), "2")

    def test_headers_carry_referer(self):
        spider = MangaSpider(self.config, session=make_session({}))
        headers = spider.get_headers()
        self.assertEqual(headers["Referer"], "https://mangapill.com")
        self.assertEqual(headers["User-Agent"], self.config.site.user_agent)


if __name__ == '__main__':
    unittest.main()
