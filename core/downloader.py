"""
章节下载器模块

- PageFetcher: 下载单张图片并写入磁盘
- ChapterDownloader: 解析章节页图片列表，限流并发下载，汇总失败页码
"""
import aiohttp
import asyncio
from pathlib import Path
from typing import Dict, Any, List, Optional
from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import Config
from core.errors import FetchError, PageDownloadFailed
from parsers.manga_parser import MangaParser
from spiders.base import BaseSpider

# 可重试的传输层错误
RETRYABLE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, FetchError)


class PageFetcher:
    """单页下载器"""

    def __init__(self, config: Config, session: aiohttp.ClientSession):
        self.config = config
        self.session = session
        self.download_stats = {
            "total": 0,
            "success": 0,
            "failed": 0,
        }

    def page_path(self, chapter_path: Path, page_num: int) -> Path:
        return chapter_path / self.config.output.page_filename.format(page_num=page_num)

    async def _get_bytes(self, url: str) -> bytes:
        async with self.session.get(url) as response:
            if response.status // 100 != 2:
                raise FetchError(url, f"HTTP {response.status}")
            return await response.read()

    async def fetch_page(self, url: str, chapter_path: Path, page_num: int) -> Path:
        """
        下载单张图片

        失败时按指数退避重试，重试用尽后统一抛出 PageDownloadFailed，
        不区分 404 与连接中断。已存在的文件直接覆盖。

        Args:
            url: 图片URL
            chapter_path: 章节目录
            page_num: 页码（决定文件名）

        Returns:
            写入的文件路径

        Raises:
            PageDownloadFailed: 下载或写入失败
        """
        self.download_stats["total"] += 1
        save_path = self.page_path(chapter_path, page_num)
        crawler_config = self.config.crawler

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(crawler_config.page_retries),
                wait=wait_exponential(
                    multiplier=1,
                    min=crawler_config.retry_min_wait,
                    max=crawler_config.retry_max_wait
                ),
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                reraise=True,
            ):
                with attempt:
                    data = await self._get_bytes(url)

            with open(save_path, "wb") as f:
                f.write(data)

        except (*RETRYABLE_ERRORS, OSError) as e:
            self.download_stats["failed"] += 1
            logger.error(f"Failed to download {url}: {e}")
            raise PageDownloadFailed(url, chapter_path, page_num) from e

        self.download_stats["success"] += 1
        logger.debug(f"Downloaded: {save_path} ({len(data)} bytes)")
        return save_path


class ChapterDownloader(BaseSpider):
    """
    章节下载器

    同一进程内所有并发下载共用一个 aiohttp 会话。

    Example:
        async with ChapterDownloader(config) as downloader:
            failed = await downloader.download_chapter(url, Path("tmp/x/chapter-0001"))
    """

    def __init__(self, config: Config, session: Optional[aiohttp.ClientSession] = None):
        super().__init__(config, session)
        self.parser = MangaParser(config.site)
        self.fetcher: Optional[PageFetcher] = None
        self.stats.update({
            'chapters_downloaded': 0,
            'pages_failed': 0,
        })

    async def init(self):
        await super().init()
        self.fetcher = PageFetcher(self.config, self.session)

    async def fetch_image_urls(self, chapter_url: str) -> List[str]:
        """
        获取章节页并解析图片地址

        Raises:
            FetchError: 章节页请求失败
        """
        _, html = await self.fetch_document(chapter_url)
        return self.parser.parse_page_images(html, chapter_url)

    async def download_chapter(self, chapter_url: str, destination_dir: Path) -> List[int]:
        """
        下载整个章节

        单页失败不影响其他页，也不使章节失败，只记录其页码。
        完成顺序不固定，但文件名由页码决定，磁盘布局与完成顺序无关。

        Args:
            chapter_url: 章节页完整URL
            destination_dir: 章节目录

        Returns:
            失败页码列表（升序）

        Raises:
            FetchError: 章节页本身无法获取
        """
        if self.fetcher is None:
            await self.init()

        image_urls = await self.fetch_image_urls(chapter_url)
        destination_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"🖼️  {destination_dir.name}: 发现 {len(image_urls)} 张图片")

        semaphore = asyncio.Semaphore(self.config.crawler.max_concurrent_pages)

        async def fetch_with_semaphore(page_num: int, url: str):
            async with semaphore:
                return await self.fetcher.fetch_page(url, destination_dir, page_num)

        results = await asyncio.gather(
            *[fetch_with_semaphore(i, url) for i, url in enumerate(image_urls)],
            return_exceptions=True
        )

        failed_pages = []
        for result in results:
            if isinstance(result, PageDownloadFailed):
                failed_pages.append(result.page_num)
            elif isinstance(result, BaseException):
                raise result

        self.stats['chapters_downloaded'] += 1
        self.stats['pages_failed'] += len(failed_pages)
        if failed_pages:
            logger.warning(f"⚠️  {destination_dir.name}: {len(failed_pages)} 页下载失败 {sorted(failed_pages)}")
        return sorted(failed_pages)

    def get_statistics(self) -> Dict[str, Any]:
        stats = dict(self.stats)
        if self.fetcher:
            stats['pages'] = dict(self.fetcher.download_stats)
        return stats
