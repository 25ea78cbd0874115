"""
解析器模块

包含页面解析器：
- BaseParser: 解析器基类
- MangaParser: Mangapill 页面解析器
"""
from parsers.base import BaseParser
from parsers.manga_parser import MangaParser, normalize_titles

__all__ = ['BaseParser', 'MangaParser', 'normalize_titles']
