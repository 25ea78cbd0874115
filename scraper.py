"""
Mangapill 章节下载器 - 调度进程

爬取作品章节列表，把选中的章节发布到任务队列，
启动 worker 进程并等待所有章节完成。

Usage:
    python scraper.py <title_id> [-w WORKERS] [--chapters 2-3 | --all]
"""
import sys
from loguru import logger

from cli.commands import create_parser
from cli.handlers import handle_download
from config import config, setup_logger
from core.errors import ScraperError


def main():
    parser = create_parser()
    args = parser.parse_args()

    # 配置日志（worker 进程通过环境变量继承级别）
    if args.log_level:
        config.log.log_level = args.log_level
    setup_logger(config.log)

    print("\n" + "=" * 60)
    print("📖 Mangapill 章节下载器")
    print("=" * 60)

    try:
        report = handle_download(args, config)
    except ScraperError as e:
        logger.error(f"❌ {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("用户中断")
        sys.exit(1)

    if report.missing:
        sys.exit(1)


if __name__ == "__main__":
    main()
