"""
解析器基类模块

包含解析器的抽象基类：
- BaseParser: 解析器基类
"""
from abc import ABC
from typing import List, Optional
from urllib.parse import urljoin
from bs4 import BeautifulSoup
from loguru import logger


class BaseParser(ABC):
    """
    解析器基类

    所有解析器的公共基类，提供：
    - 基础HTML解析
    - 图片地址提取（含懒加载属性回退）

    子类按站点结构实现具体的 parse_* 方法
    """

    # 图片地址属性，按优先级排列
    IMAGE_ATTRIBUTES = ('src', 'data-src')

    def __init__(self, parser_config=None):
        """
        初始化解析器

        Args:
            parser_config: 站点配置对象，可选
        """
        self._config = parser_config

    @staticmethod
    def _soup(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, 'lxml')

    def _get_image_url(self, img_tag) -> Optional[str]:
        """
        从img标签获取图片URL

        优先使用 src，缺失时回退到懒加载属性

        Args:
            img_tag: BeautifulSoup img标签

        Returns:
            图片URL，如果无法获取返回None
        """
        for attr in self.IMAGE_ATTRIBUTES:
            value = img_tag.get(attr)
            if value:
                return value
        return None

    def _extract_images_from_soup(
        self,
        soup: BeautifulSoup,
        selector: str,
        base_url: Optional[str] = None
    ) -> List[str]:
        """
        按页面顺序提取图片URL

        与通用图片采集不同，这里不去重：列表下标就是页码。
        缺少地址的元素被跳过并记录日志。

        Args:
            soup: BeautifulSoup对象
            selector: CSS选择器
            base_url: 基础URL（用于处理相对路径）

        Returns:
            图片URL列表
        """
        images = []
        for index, img in enumerate(soup.select(selector)):
            src = self._get_image_url(img)
            if not src:
                logger.debug(f"img element with missing url: {img}")
                logger.error(f"failed to extract url for page {index + 1}")
                continue
            if base_url and not src.startswith('http'):
                src = urljoin(base_url, src)
            images.append(src)
        return images
