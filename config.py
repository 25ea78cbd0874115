"""
配置管理模块 - Mangapill 章节下载器
统一配置管理，所有组件在构造时接收 Config 实例
"""
from pydantic import BaseModel, Field
from typing import Optional
import os
import sys
from pathlib import Path
from dotenv import load_dotenv
from loguru import logger

load_dotenv()

# 项目根目录
BASE_DIR = Path(__file__).parent

DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:145.0) Gecko/20100101 Firefox/145.0"


class SiteConfig(BaseModel):
    """源站配置"""
    host_url: str = Field(default="https://mangapill.com", description="站点根URL（可替换为镜像）")
    title_path: str = Field(default="/manga/{title_id}", description="作品页路径模板")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="固定User-Agent")
    rotate_user_agent: bool = Field(default=False, description="是否随机UA")

    # 选择器配置
    chapter_list_selector: str = Field(default="#chapters a", description="章节列表链接选择器")
    page_image_selector: str = Field(default="chapter-page img", description="章节图片选择器")
    display_name_selector: str = Field(default="h1", description="作品名称选择器")

    def title_url(self, title_id) -> str:
        """作品页完整URL"""
        return self.host_url.rstrip("/") + self.title_path.format(title_id=title_id)

    def absolute_url(self, path: str) -> str:
        """相对路径 -> 完整URL"""
        if path.startswith("http"):
            return path
        return self.host_url.rstrip("/") + "/" + path.lstrip("/")


class CrawlerConfig(BaseModel):
    """下载配置"""
    # 并发控制
    max_concurrent_pages: int = Field(default=6, ge=1, description="单章节最大并发图片数")
    request_timeout: int = Field(default=30, description="请求超时时间（秒）")

    # 重试配置
    page_retries: int = Field(default=3, ge=1, description="单页最大尝试次数")
    retry_min_wait: float = Field(default=1.0, description="重试最小等待（秒）")
    retry_max_wait: float = Field(default=10.0, description="重试最大等待（秒）")


class QueueConfig(BaseModel):
    """消息队列配置（Redis）"""
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis连接URL")
    chapter_queue: str = Field(default="chapter_queue", description="任务队列")
    completed_queue: str = Field(default="chapter_completed_queue", description="完成回执队列")

    max_attempts: int = Field(default=3, ge=1, description="单章节最大尝试次数（含首次）")
    poll_timeout: int = Field(default=1, ge=1, description="阻塞读取超时（秒）")
    retry_interval: float = Field(default=1.0, description="回执队列断线后重新订阅间隔（秒）")
    completion_timeout: float = Field(default=30.0, description="所有worker退出后等待回执的宽限时间（秒）")


class OutputConfig(BaseModel):
    """输出配置"""
    output_dir: Path = Field(default=Path("tmp"), description="下载根目录")
    page_filename: str = Field(default="{page_num:03d}.jpg", description="图片命名模式")
    show_progress: bool = Field(default=True, description="是否显示进度条")


class LogConfig(BaseModel):
    """日志配置"""
    log_level: str = Field(default="INFO", description="日志级别")
    log_dir: Path = Field(default=BASE_DIR / "logs", description="日志目录")
    log_file: str = Field(default="scraper.log", description="日志文件名")
    rotation: str = Field(default="100 MB", description="日志轮转大小")
    retention: str = Field(default="30 days", description="日志保留时间")


class Config(BaseModel):
    """全局配置"""
    site: SiteConfig = Field(default_factory=SiteConfig)
    crawler: CrawlerConfig = Field(default_factory=CrawlerConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    log: LogConfig = Field(default_factory=LogConfig)


# 从环境变量加载配置
def load_config_from_env() -> Config:
    """从环境变量加载配置"""
    config_data = {
        "site": {
            "host_url": os.getenv("MANGA_HOST_URL", "https://mangapill.com"),
            "rotate_user_agent": os.getenv("ROTATE_USER_AGENT", "false").lower() == "true",
        },
        "crawler": {
            "max_concurrent_pages": int(os.getenv("MAX_CONCURRENT_PAGES", "6")),
            "request_timeout": int(os.getenv("REQUEST_TIMEOUT", "30")),
            "page_retries": int(os.getenv("PAGE_RETRIES", "3")),
        },
        "queue": {
            "redis_url": os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            "chapter_queue": os.getenv("CHAPTER_QUEUE", "chapter_queue"),
            "completed_queue": os.getenv("CHAPTER_COMPLETED_QUEUE", "chapter_completed_queue"),
            "max_attempts": int(os.getenv("MAX_ATTEMPTS", "3")),
            "completion_timeout": float(os.getenv("COMPLETION_TIMEOUT", "30")),
        },
        "output": {
            "output_dir": Path(os.getenv("OUTPUT_DIR", "tmp")),
        },
        "log": {
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }
    }
    return Config(**config_data)


def setup_logger(log_config: LogConfig, log_file: Optional[str] = None, level: Optional[str] = None):
    """
    配置日志输出

    Args:
        log_config: 日志配置
        log_file: 覆盖日志文件名（worker 进程使用独立文件）
        level: 覆盖控制台日志级别
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=level or log_config.log_level,
        colorize=True
    )

    log_path = log_config.log_dir / (log_file or log_config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path,
        rotation=log_config.rotation,
        retention=log_config.retention,
        encoding="utf-8",
        level="DEBUG"
    )


# 全局配置实例（默认从环境变量加载）
config = load_config_from_env()
