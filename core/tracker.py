"""
完成回执跟踪器

在调度进程中作为独立任务运行，消费回执队列并推进进度计数。
"""
import asyncio
from typing import Dict, List, Optional, Set, Tuple
from loguru import logger
from redis.exceptions import RedisError
from tqdm import tqdm

from config import Config
from core.errors import MalformedMessage
from core.job_queue import JobQueue
from core.messages import decode_completion
from core.models import Chapter, CompletionRecord


class CompletionTracker:
    """
    完成回执跟踪器

    - 可解析的回执：确认；若为终态且章节首次出现，计数加一
    - 计数达到总数：取消订阅并结束
    - 无法解析的回执：确认但不计数
    - 投递错误：记录日志，稍后重新订阅，不退出

    同一章节的重复终态回执只计一次。
    """

    CONSUMER_TAG = "completion-tracker"

    def __init__(self, config: Config, job_queue: JobQueue, total: int, show_progress: Optional[bool] = None):
        """
        Args:
            config: 配置对象
            job_queue: 任务队列
            total: 计划下载的章节数
            show_progress: 是否显示进度条，默认取配置
        """
        self.config = config
        self.job_queue = job_queue
        self.total = total
        self.show_progress = config.output.show_progress if show_progress is None else show_progress

        self.completed = 0
        self.finished = asyncio.Event()
        self.observed: Set[Tuple[str, str]] = set()
        self.failures: Dict[str, CompletionRecord] = {}
        self.stats = {
            'records_received': 0,
            'retries_reported': 0,
            'duplicates_ignored': 0,
            'malformed_records': 0,
            'delivery_errors': 0,
        }

    @staticmethod
    def _identity(chapter: Chapter) -> Tuple[str, str]:
        return chapter.url, chapter.title

    def record(self, record: CompletionRecord) -> bool:
        """
        登记一条回执

        Returns:
            是否推进了计数
        """
        self.stats['records_received'] += 1
        if not record.is_terminal:
            self.stats['retries_reported'] += 1
            return False

        identity = self._identity(record.chapter)
        if identity in self.observed:
            self.stats['duplicates_ignored'] += 1
            logger.debug(f"Duplicate completion for {record.chapter} ignored")
            return False

        self.observed.add(identity)
        if not record.is_success:
            self.failures[record.chapter.title] = record
        self.completed += 1
        return True

    def is_observed(self, chapter: Chapter) -> bool:
        return self._identity(chapter) in self.observed

    def missing(self, chapters: List[Chapter]) -> List[Chapter]:
        """从未收到终态回执的章节"""
        return [chapter for chapter in chapters if not self.is_observed(chapter)]

    async def run(self):
        """消费回执队列直到计数达到总数"""
        if self.total <= 0:
            self.finished.set()
            return

        progress = tqdm(total=self.total, desc="下载进度", unit="chapter", disable=not self.show_progress)
        try:
            while not self.finished.is_set():
                try:
                    await self._consume(progress)
                except RedisError as e:
                    self.stats['delivery_errors'] += 1
                    logger.error(f"❌ 回执队列投递错误: {e}")
                    await asyncio.sleep(self.config.queue.retry_interval)
        finally:
            progress.close()

    async def _consume(self, progress: tqdm):
        async for delivery in self.job_queue.consume(self.job_queue.completed_queue, self.CONSUMER_TAG):
            try:
                record = decode_completion(delivery.data)
            except MalformedMessage as e:
                self.stats['malformed_records'] += 1
                logger.warning(f"⚠️  无法解析的回执: {e}")
                await delivery.ack()
                continue

            await delivery.ack()
            if self.record(record):
                progress.update(1)
                if not record.is_success:
                    logger.warning(f"⚠️  {record.chapter} 最终状态: {record.kind.value}")

            if self.completed >= self.total:
                await self.job_queue.cancel(self.CONSUMER_TAG)
                self.finished.set()
                break

    def get_statistics(self) -> Dict[str, int]:
        return {**self.stats, 'completed': self.completed, 'total': self.total}
