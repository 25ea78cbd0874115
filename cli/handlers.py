"""
CLI命令处理函数
"""
import asyncio
from pathlib import Path
from loguru import logger

from config import Config
from core.dispatcher import Dispatcher, DispatchReport
from core.downloader import ChapterDownloader
from core.job_queue import JobQueue
from core.worker import Worker
from cli.selection import select_chapters


def handle_download(args, config: Config) -> DispatchReport:
    """
    处理调度命令

    三个阶段：异步爬取 -> 阻塞的章节选择 -> 异步调度
    """
    if args.output:
        config.output.output_dir = Path(args.output)

    dispatcher = Dispatcher(config)

    # 1. 爬取章节列表
    manga = asyncio.run(dispatcher.crawl(args.title_id))
    print(f"\n📚 {manga.display_name} ({manga.slug}): {len(manga.chapters)} 章")

    # 2. 选择章节（阻塞，在事件循环之外）
    selected = select_chapters(manga.chapters, args.chapters, args.all)
    logger.info(f"📝 选中 {len(selected)} 个章节: {selected[0]} .. {selected[-1]}")

    # 3. 调度下载
    report = asyncio.run(dispatcher.dispatch(manga, selected, args.workers))
    print_report(report)
    return report


async def run_worker(config: Config, manga_path: Path) -> int:
    """
    运行 worker 消费循环

    Returns:
        进程退出码

    Raises:
        BrokerError: 无法连接消息队列
    """
    job_queue = await JobQueue.connect(config.queue)
    try:
        async with ChapterDownloader(config) as downloader:
            worker = Worker(config, job_queue, downloader, manga_path)
            return await worker.run()
    finally:
        await job_queue.close()


def handle_worker(args, config: Config) -> int:
    """处理 worker 命令"""
    return asyncio.run(run_worker(config, Path(args.manga_path)))


def print_report(report: DispatchReport):
    """输出调度结果"""
    print("\n" + "=" * 60)
    print(report.summary())

    if report.failures:
        print("⚠️  以下章节存在下载失败:")
        for record in report.failures:
            detail = f"pages {record.failed_pages}" if record.failed_pages else record.reason
            print(f"  {record.chapter.title}: {detail}")

    if report.missing:
        print("⚠️  以下章节未收到完成回执:")
        for chapter in report.missing:
            print(f"  {chapter.title}")
    print("=" * 60)
