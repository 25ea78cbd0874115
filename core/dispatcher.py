"""
章节下载调度器

调度进程：爬取章节列表 -> 发布任务与哨兵 -> 启动 worker 进程 ->
并发运行完成跟踪器 -> 等待 worker 退出 -> 汇报结果。

交互式章节选择是阻塞操作，不在这里发生：crawl() 与 dispatch()
分别在两次 asyncio.run 中执行，选择在两者之间完成。
"""
import asyncio
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional
from loguru import logger

from config import BASE_DIR, Config
from core.errors import InvalidChapterSelection, NoChaptersFound
from core.job_queue import JobQueue
from core.messages import encode_job
from core.models import Chapter, ChapterJob, CompletionRecord, MangaInfo
from core.tracker import CompletionTracker
from spiders.manga_spider import MangaSpider

WORKER_SCRIPT = BASE_DIR / "worker.py"


class DispatchReport:
    """一次调度的结果"""

    def __init__(
        self,
        chapters: List[Chapter],
        elapsed: float,
        destination: Path,
        missing: List[Chapter],
        failures: List[CompletionRecord],
        worker_exit_codes: List[int]
    ):
        self.chapters = chapters
        self.elapsed = elapsed
        self.destination = destination
        self.missing = missing
        self.failures = failures
        self.worker_exit_codes = worker_exit_codes

    @property
    def chapter_count(self) -> int:
        return len(self.chapters)

    def summary(self) -> str:
        noun = "chapter" if self.chapter_count == 1 else "chapters"
        return (
            f"Downloaded {self.chapter_count} {noun} in {self.elapsed:.2f} seconds "
            f"to {self.destination.as_posix()}/"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'chapters': self.chapter_count,
            'elapsed': round(self.elapsed, 2),
            'destination': str(self.destination),
            'missing': [chapter.title for chapter in self.missing],
            'failures': {r.chapter.title: r.failed_pages or r.reason for r in self.failures},
            'worker_exit_codes': self.worker_exit_codes,
        }


class Dispatcher:
    """
    调度器

    Example:
        dispatcher = Dispatcher(config)
        manga = asyncio.run(dispatcher.crawl("2"))
        selected = select_chapters(manga.chapters, ...)
        report = asyncio.run(dispatcher.dispatch(manga, selected, workers=4))
    """

    def __init__(self, config: Config, job_queue: Optional[JobQueue] = None):
        """
        Args:
            config: 配置对象
            job_queue: 已连接的任务队列；不提供时 dispatch() 自行连接并在结束时关闭
        """
        self.config = config
        self.job_queue = job_queue

    async def crawl(self, title_id) -> MangaInfo:
        """
        爬取作品信息与章节列表

        Raises:
            FetchError: 作品页请求失败
            InvalidBookId: 作品ID无效
            NoChaptersFound: 没有解析出章节
        """
        title_url = self.config.site.title_url(title_id)
        logger.info(f"📚 爬取作品: {title_url}")

        async with MangaSpider(self.config) as spider:
            chapters = await spider.fetch_chapter_list(title_url)
            canonical_url = await spider.resolve_title(title_url)
            slug = spider.slug_of(canonical_url)
            display_name = await spider.fetch_display_name(title_url) or slug

        if not chapters:
            raise NoChaptersFound(title_url)

        logger.success(f"✅ {display_name}: 共 {len(chapters)} 章")
        return MangaInfo(
            title_id=str(title_id),
            title_url=title_url,
            canonical_url=canonical_url,
            slug=slug,
            display_name=display_name,
            chapters=chapters,
        )

    def manga_path(self, manga: MangaInfo) -> Path:
        return self.config.output.output_dir / manga.slug

    def prepare_directories(self, manga_path: Path, chapters: List[Chapter]):
        """发布任务前创建所有章节目录"""
        for chapter in chapters:
            (manga_path / chapter.title).mkdir(parents=True, exist_ok=True)

    def worker_env(self) -> Dict[str, str]:
        """
        worker 进程的环境变量

        worker 从环境变量加载配置，这里把调度进程的当前配置写回环境，
        使命令行覆盖与代码构造的配置同样作用于 worker。
        """
        env = dict(os.environ)
        env.update({
            "MANGA_HOST_URL": self.config.site.host_url,
            "ROTATE_USER_AGENT": str(self.config.site.rotate_user_agent).lower(),
            "MAX_CONCURRENT_PAGES": str(self.config.crawler.max_concurrent_pages),
            "REQUEST_TIMEOUT": str(self.config.crawler.request_timeout),
            "PAGE_RETRIES": str(self.config.crawler.page_retries),
            "REDIS_URL": self.config.queue.redis_url,
            "CHAPTER_QUEUE": self.config.queue.chapter_queue,
            "CHAPTER_COMPLETED_QUEUE": self.config.queue.completed_queue,
            "MAX_ATTEMPTS": str(self.config.queue.max_attempts),
            "OUTPUT_DIR": str(self.config.output.output_dir),
            "LOG_LEVEL": self.config.log.log_level,
        })
        return env

    async def spawn_worker(self, manga_path: Path):
        """
        启动一个 worker 进程

        Returns:
            asyncio.subprocess.Process（提供 wait()）
        """
        return await asyncio.create_subprocess_exec(
            sys.executable, str(WORKER_SCRIPT), str(manga_path),
            env=self.worker_env()
        )

    async def dispatch(self, manga: MangaInfo, chapters: List[Chapter], workers: int = 1) -> DispatchReport:
        """
        调度下载选中的章节

        Args:
            manga: crawl() 的结果
            chapters: 选中的章节
            workers: 期望的 worker 数量（实际为 min(workers, 章节数)）

        Returns:
            DispatchReport

        Raises:
            InvalidChapterSelection: 没有选中章节
            BrokerError: 无法连接消息队列
        """
        if not chapters:
            raise InvalidChapterSelection("no chapters selected")

        started = time.monotonic()
        manga_path = self.manga_path(manga)
        self.prepare_directories(manga_path, chapters)

        owns_queue = self.job_queue is None
        job_queue = self.job_queue or await JobQueue.connect(self.config.queue)
        tracker_task = None

        try:
            await job_queue.purge()

            tracker = CompletionTracker(self.config, job_queue, len(chapters))
            tracker_task = asyncio.create_task(tracker.run())

            worker_count = max(1, min(workers, len(chapters)))
            logger.info(f"🚀 启动 {worker_count} 个 worker，调度 {len(chapters)} 个章节")
            processes = [await self.spawn_worker(manga_path) for _ in range(worker_count)]

            for chapter in chapters:
                await job_queue.publish_job(encode_job(ChapterJob(chapter=chapter)))
            for _ in range(worker_count):
                await job_queue.publish_sentinel()
            logger.info(f"📦 已发布 {len(chapters)} 个任务和 {worker_count} 条终止消息")

            exit_codes = list(await asyncio.gather(*(process.wait() for process in processes)))
            for index, code in enumerate(exit_codes):
                if code != 0:
                    logger.error(f"❌ worker #{index} 异常退出: {code}")

            try:
                await asyncio.wait_for(tracker_task, timeout=self.config.queue.completion_timeout)
            except asyncio.TimeoutError:
                logger.error(
                    f"❌ 所有 worker 已退出，{self.config.queue.completion_timeout}s 内仍缺少 "
                    f"{tracker.total - tracker.completed} 个章节的回执"
                )
        finally:
            if tracker_task and not tracker_task.done():
                tracker_task.cancel()
            if owns_queue:
                await job_queue.close()

        report = DispatchReport(
            chapters=chapters,
            elapsed=time.monotonic() - started,
            destination=manga_path,
            missing=tracker.missing(chapters),
            failures=list(tracker.failures.values()),
            worker_exit_codes=exit_codes,
        )
        logger.info(f"📊 调度结果: {report.to_dict()}")
        logger.debug(f"📊 调度统计: {tracker.get_statistics()} / 队列: {job_queue.stats}")
        return report
