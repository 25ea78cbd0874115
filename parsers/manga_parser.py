"""
Mangapill 页面解析器
"""
import re
from typing import List, Optional
from loguru import logger

from config import SiteConfig
from core.errors import ParseError
from core.models import Chapter
from parsers.base import BaseParser

# 结尾的章节号，如 "chapter-10" / "chapter-10.5"
TRAILING_NUMBER = re.compile(r'(\d+)(?:\.(\d+))?$')
# 路径分隔符与空白统一替换
SEPARATORS = re.compile(r'[\s/\\]+')

MIN_NUMBER_WIDTH = 4


def slugify(raw_title: str) -> str:
    """小写并替换路径分隔符和空白"""
    return SEPARATORS.sub('-', raw_title.strip().lower())


def normalize_titles(raw_titles: List[str]) -> List[str]:
    """
    规范化一组章节标题，使字典序与章节号顺序一致

    结尾数字的整数部分左补零到本组最长整数位数（至少4位），
    小数部分右补零到本组最长小数位数。没有结尾数字的标题只做 slugify。

    Args:
        raw_titles: 原始标题列表

    Returns:
        规范化标题列表（与输入一一对应）
    """
    slugs = [slugify(title) for title in raw_titles]
    matches = [TRAILING_NUMBER.search(slug) for slug in slugs]

    int_width = max([len(m.group(1)) for m in matches if m] + [MIN_NUMBER_WIDTH])
    frac_width = max([len(m.group(2)) for m in matches if m and m.group(2)] + [0])

    titles = []
    for slug, match in zip(slugs, matches):
        if not match:
            titles.append(slug)
            continue
        number = match.group(1).zfill(int_width)
        if match.group(2):
            number += '.' + match.group(2).ljust(frac_width, '0')
        titles.append(slug[:match.start()] + number)
    return titles


class MangaParser(BaseParser):
    """
    Mangapill 页面解析器

    - 作品页：章节列表、作品名称
    - 章节页：图片地址列表
    """

    def __init__(self, parser_config: Optional[SiteConfig] = None):
        """
        初始化解析器

        Args:
            parser_config: 站点配置，不提供时使用默认值
        """
        super().__init__(parser_config)
        self.config = parser_config or SiteConfig()

    def parse_chapter_list(self, html: str) -> List[Chapter]:
        """
        解析作品页章节列表

        站点按最新在前排列，返回时反转为最早在前。
        缺少 title 属性的链接得到空标题，仍然生成合法的 Chapter。

        Args:
            html: 作品页HTML

        Returns:
            章节列表（最早在前）
        """
        soup = self._soup(html)
        anchors = list(reversed(soup.select(self.config.chapter_list_selector)))

        if not anchors:
            logger.warning(f"No chapter links matched '{self.config.chapter_list_selector}'")
            return []

        urls = [a.get('href') or '' for a in anchors]
        titles = normalize_titles([a.get('title') or '' for a in anchors])

        chapters = [Chapter(url=url, title=title) for url, title in zip(urls, titles)]
        logger.info(f"Parsed {len(chapters)} chapters from title page")
        return chapters

    def parse_page_images(self, html: str, base_url: Optional[str] = None) -> List[str]:
        """
        解析章节页图片地址（按页码顺序）

        Args:
            html: 章节页HTML
            base_url: 章节页URL，用于补全相对地址

        Returns:
            图片URL列表
        """
        soup = self._soup(html)
        return self._extract_images_from_soup(soup, self.config.page_image_selector, base_url)

    def parse_display_name(self, html: str) -> str:
        """
        解析作品显示名称

        Raises:
            ParseError: 页面中没有名称元素
        """
        soup = self._soup(html)
        element = soup.select_one(self.config.display_name_selector)
        name = element.get_text(strip=True) if element else ''
        if not name:
            raise ParseError(f"no display name matched '{self.config.display_name_selector}'")
        return name
