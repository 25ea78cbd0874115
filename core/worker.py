"""
章节下载 Worker

独立进程中运行：从任务队列逐条取章节，下载后发布回执，收到哨兵后退出。
"""
import os
from pathlib import Path
from typing import Dict, Any, Optional
from loguru import logger
from redis.exceptions import RedisError

from config import Config
from core.downloader import ChapterDownloader
from core.errors import MalformedMessage, ScraperError
from core.job_queue import Delivery, JobQueue
from core.messages import decode_job, encode_completion, encode_job, is_sentinel
from core.models import ChapterJob, CompletionRecord


class Worker:
    """
    章节下载 Worker

    状态: Idle -> Processing -> (Idle | Exited)

    Example:
        worker = Worker(config, job_queue, downloader, Path("tmp/example-manga"))
        exit_code = await worker.run()
    """

    def __init__(
        self,
        config: Config,
        job_queue: JobQueue,
        downloader: ChapterDownloader,
        manga_path: Path,
        consumer_tag: Optional[str] = None
    ):
        """
        Args:
            config: 配置对象
            job_queue: 任务队列
            downloader: 章节下载器
            manga_path: 作品输出目录
            consumer_tag: 消费者标识，默认按进程号生成
        """
        self.config = config
        self.job_queue = job_queue
        self.downloader = downloader
        self.manga_path = manga_path
        self.consumer_tag = consumer_tag or f"worker-{os.getpid()}"
        self.stats = {
            'jobs_processed': 0,
            'jobs_requeued': 0,
            'malformed_messages': 0,
            'sentinels_received': 0,
        }

    async def run(self) -> int:
        """
        消费循环

        Returns:
            进程退出码：收到哨兵为 0，队列投递错误为 1
        """
        logger.info(f"🔧 {self.consumer_tag} 启动，输出目录: {self.manga_path}")
        exit_code = 0

        try:
            async for delivery in self.job_queue.consume(self.job_queue.chapter_queue, self.consumer_tag):
                if is_sentinel(delivery.data):
                    await delivery.ack()
                    self.stats['sentinels_received'] += 1
                    logger.info(f"🛑 {self.consumer_tag} 收到终止消息")
                    break

                try:
                    job = decode_job(delivery.data)
                except MalformedMessage as e:
                    self.stats['malformed_messages'] += 1
                    logger.warning(f"⚠️  {self.consumer_tag} 跳过无法解析的消息: {e}")
                    await delivery.ack()
                    continue

                await self.process(job, delivery)

        except RedisError as e:
            logger.error(f"❌ {self.consumer_tag} 队列投递错误: {e}")
            exit_code = 1

        await self.job_queue.cancel(self.consumer_tag)
        logger.info(f"🔒 {self.consumer_tag} 退出: {self.stats}")
        return exit_code

    async def process(self, job: ChapterJob, delivery: Delivery):
        """
        处理单个章节任务

        需要重试时先把任务放回队列再确认，保证重试任务排在哨兵之前。
        """
        chapter = job.chapter
        chapter_url = self.config.site.absolute_url(chapter.url)
        chapter_path = self.manga_path / chapter.title
        can_retry = job.attempt + 1 < self.config.queue.max_attempts

        logger.info(f"📥 {self.consumer_tag} 开始下载 {chapter} (attempt {job.attempt + 1})")

        try:
            failed_pages = await self.downloader.download_chapter(chapter_url, chapter_path)
        except (ScraperError, OSError) as e:
            logger.error(f"❌ {self.consumer_tag} 章节 {chapter} 下载失败: {e}")
            record = CompletionRecord.failed(job, str(e), requeued=can_retry)
        else:
            if failed_pages:
                record = CompletionRecord.partially_failed(job, failed_pages, requeued=can_retry)
            else:
                record = CompletionRecord.completed(job)

        if record.requeued:
            await self.job_queue.requeue_job(encode_job(job.next_attempt()))
            self.stats['jobs_requeued'] += 1
            logger.warning(f"🔁 {chapter} 未完整下载，重新入队 (attempt {job.attempt + 2})")

        await delivery.ack()
        await self.job_queue.publish_completion(encode_completion(record))
        self.stats['jobs_processed'] += 1
        logger.info(f"✅ {self.consumer_tag} 完成 {chapter}: {record.kind.value}")

    def get_statistics(self) -> Dict[str, Any]:
        return dict(self.stats)
