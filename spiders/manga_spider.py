"""
作品页爬虫

- 解析规范URL（站点对有效ID跳转到 /manga/<id>/<slug>）
- 抓取章节列表
- 抓取作品显示名称（尽力而为）
"""
from typing import Dict, Any, List, Optional, Tuple
from urllib.parse import urlparse
from loguru import logger

from config import Config
from core.errors import FetchError, InvalidBookId, ParseError
from core.models import Chapter
from parsers.manga_parser import MangaParser
from spiders.base import BaseSpider


class MangaSpider(BaseSpider):
    """
    作品页爬虫

    同一实例内作品页只抓取一次，三个操作共用缓存。

    Example:
        async with MangaSpider(config) as spider:
            chapters = await spider.fetch_chapter_list(url)
    """

    def __init__(self, config: Config, session=None):
        super().__init__(config, session)
        self.parser = MangaParser(config.site)
        self._pages: Dict[str, Tuple[str, str]] = {}

    async def _fetch_title_page(self, title_url: str) -> Tuple[str, str]:
        if title_url not in self._pages:
            self._pages[title_url] = await self.fetch_document(title_url)
        return self._pages[title_url]

    @staticmethod
    def slug_of(canonical_url: str) -> str:
        """规范URL的最后一段路径"""
        return urlparse(canonical_url).path.rstrip('/').rsplit('/', 1)[-1]

    async def resolve_title(self, title_url: str) -> str:
        """
        解析规范URL

        Returns:
            跳转后的规范URL

        Raises:
            FetchError: 请求失败
            InvalidBookId: 规范URL最后一段是纯数字（站点未识别该ID）
        """
        canonical_url, _ = await self._fetch_title_page(title_url)
        slug = self.slug_of(canonical_url)
        if not slug or slug.isdigit():
            raise InvalidBookId(slug or title_url)
        logger.info(f"🔗 规范URL: {canonical_url}")
        return canonical_url

    async def fetch_chapter_list(self, title_url: str) -> List[Chapter]:
        """
        抓取章节列表

        Args:
            title_url: 作品页URL

        Returns:
            章节列表（最早在前）

        Raises:
            FetchError: 请求失败
            InvalidBookId: 作品ID无效
        """
        await self.resolve_title(title_url)
        _, html = await self._fetch_title_page(title_url)
        return self.parser.parse_chapter_list(html)

    async def fetch_display_name(self, title_url: str) -> Optional[str]:
        """抓取作品显示名称，失败返回 None"""
        try:
            _, html = await self._fetch_title_page(title_url)
            return self.parser.parse_display_name(html)
        except (FetchError, ParseError) as e:
            logger.warning(f"⚠️  获取作品名称失败: {e}")
            return None

    def get_statistics(self) -> Dict[str, Any]:
        return {**self.stats, 'title_pages_cached': len(self._pages)}
