"""
异常定义

所有可预期错误都继承 ScraperError，入口处统一捕获并以非零状态退出。
PageDownloadFailed 不会越过章节下载器边界，只以失败页码的形式回传。
"""
from pathlib import Path


class ScraperError(Exception):
    """下载器异常基类"""


class FetchError(ScraperError):
    """网络请求失败（传输错误或非2xx响应）"""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"failed to fetch {url}: {reason}")


class ParseError(ScraperError):
    """HTML结构不符合预期"""


class MalformedMessage(ParseError):
    """队列消息无法解码"""


class InvalidBookId(ScraperError):
    """作品ID无效（站点未跳转到带slug的规范URL）"""

    def __init__(self, book_id):
        self.book_id = book_id
        super().__init__(f"failed to get title for id: {book_id}")


class InvalidChapterSelection(ScraperError):
    """章节选择为空或被用户取消"""

    def __init__(self, message: str = "incomplete chapter selection"):
        super().__init__(message)


class NoChaptersFound(ScraperError):
    """作品页没有解析出任何章节"""

    def __init__(self, title_url: str):
        self.title_url = title_url
        super().__init__(f"no chapters found at {title_url}")


class BrokerError(ScraperError):
    """消息队列连接失败"""


class PageDownloadFailed(ScraperError):
    """单页下载失败"""

    def __init__(self, url: str, chapter_path: Path, page_num: int):
        self.url = url
        self.chapter_path = chapter_path
        self.page_num = page_num
        super().__init__(f"failed to download {chapter_path} page {page_num}")
