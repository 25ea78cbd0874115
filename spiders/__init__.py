"""
爬虫模块

包含爬虫类：
- BaseSpider: 爬虫基类
- MangaSpider: 作品页爬虫
"""
from spiders.base import BaseSpider
from spiders.manga_spider import MangaSpider

__all__ = [
    'BaseSpider',
    'MangaSpider',
]
