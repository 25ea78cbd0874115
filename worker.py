"""
Mangapill 章节下载器 - Worker 进程

由调度进程启动，唯一参数是作品输出目录。
从任务队列逐条下载章节，收到终止消息后退出。

Usage:
    python worker.py <manga_path>

多个 worker 可以同时运行，队列保证每个 worker 同一时间只持有一条任务。
"""
import os
import sys
from loguru import logger

from cli.commands import create_worker_parser
from cli.handlers import handle_worker
from config import config, setup_logger
from core.errors import ScraperError


def main():
    args = create_worker_parser().parse_args()
    setup_logger(config.log, log_file=f"worker-{os.getpid()}.log")

    try:
        exit_code = handle_worker(args, config)
    except ScraperError as e:
        logger.error(f"❌ Worker error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Worker shutting down...")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
