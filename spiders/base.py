"""
爬虫基类模块

包含爬虫的抽象基类：
- BaseSpider: 爬虫基类
"""
import asyncio
import aiohttp
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Tuple
from loguru import logger
from fake_useragent import UserAgent

from config import Config
from core.errors import FetchError


class BaseSpider(ABC):
    """
    爬虫基类

    所有爬虫的公共基类，提供：
    - HTTP Session 管理
    - 页面获取
    - 统计信息
    - 异步上下文管理

    子类需要实现:
    - get_statistics(): 获取统计信息
    """

    def __init__(self, config: Config, session: Optional[aiohttp.ClientSession] = None):
        """
        初始化爬虫

        Args:
            config: 配置对象
            session: 外部传入的会话（传入时不负责关闭）
        """
        self.config = config
        self.session = session
        self._owns_session = session is None
        self.ua = UserAgent() if config.site.rotate_user_agent else None

        # 基础统计信息
        self.stats = {
            'pages_fetched': 0,
            'requests_failed': 0,
        }

    async def __aenter__(self):
        """异步上下文管理器入口"""
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    async def init(self):
        """初始化HTTP会话"""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.crawler.request_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout, headers=self.get_headers())

    async def close(self):
        """关闭爬虫"""
        if self.session and self._owns_session:
            await self.session.close()

        logger.debug(f"📊 爬虫统计: {self.get_statistics()}")

    def get_headers(self) -> Dict[str, str]:
        """
        获取请求头

        站点图片服务器校验 Referer
        """
        return {
            "User-Agent": self.ua.random if self.ua else self.config.site.user_agent,
            "Referer": self.config.site.host_url,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }

    async def fetch_document(self, url: str) -> Tuple[str, str]:
        """
        获取页面内容

        Args:
            url: 页面URL

        Returns:
            (跳转后的最终URL, HTML内容)

        Raises:
            FetchError: 传输错误、非2xx响应或无法解码的响应体
        """
        logger.debug(f"📄 获取页面: {url}")
        try:
            async with self.session.get(url) as response:
                if response.status // 100 != 2:
                    self.stats['requests_failed'] += 1
                    raise FetchError(url, f"HTTP {response.status}")
                html = await response.text()
                self.stats['pages_fetched'] += 1
                return str(response.url), html

        except asyncio.TimeoutError as e:
            self.stats['requests_failed'] += 1
            raise FetchError(url, "timeout") from e
        except aiohttp.ClientError as e:
            self.stats['requests_failed'] += 1
            raise FetchError(url, str(e)) from e
        except UnicodeDecodeError as e:
            self.stats['requests_failed'] += 1
            raise FetchError(url, f"undecodable response body: {e.reason}") from e

    @abstractmethod
    def get_statistics(self) -> Dict[str, Any]:
        """
        获取统计信息

        子类必须实现此方法
        """
        pass
