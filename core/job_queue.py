"""
Redis 任务队列模块

两个持久列表：
- chapter_queue: 调度进程 -> worker 的章节任务
- chapter_completed_queue: worker -> 调度进程的完成回执

消费采用可靠队列模式：消息用 BLMOVE 原子地移入消费者自己的 processing 列表，
ack 时再从中删除。迭代器只有在调用方取下一条时才会拉取，相当于 prefetch=1。
"""
from typing import AsyncIterator, Optional, Set

import redis.asyncio as redis
from redis.exceptions import RedisError
from loguru import logger

from config import QueueConfig
from core.errors import BrokerError
from core.messages import SENTINEL


class Delivery:
    """一条已投递、未确认的消息"""

    def __init__(self, job_queue: "JobQueue", processing_key: str, data: bytes):
        self._job_queue = job_queue
        self.processing_key = processing_key
        self.data = data
        self.acked = False

    async def ack(self):
        """确认消息（从 processing 列表删除）"""
        if self.acked:
            return
        await self._job_queue.redis.lrem(self.processing_key, 1, self.data)
        self.acked = True


class JobQueue:
    """
    章节任务队列

    发布用 LPUSH，消费从右端取出，保证单个队列 FIFO；
    requeue_job 用 RPUSH 放到消费端，使重试任务先于已在排队的哨兵被取走。
    """

    def __init__(self, redis_client: redis.Redis, queue_config: QueueConfig):
        """
        Args:
            redis_client: redis.asyncio 客户端
            queue_config: 队列配置
        """
        self.redis = redis_client
        self.config = queue_config
        self._cancelled: Set[str] = set()
        self.stats = {
            'jobs_published': 0,
            'jobs_requeued': 0,
            'sentinels_published': 0,
            'completions_published': 0,
        }

    @classmethod
    async def connect(cls, queue_config: QueueConfig) -> "JobQueue":
        """
        连接 Redis

        Raises:
            BrokerError: 无法连接
        """
        client = redis.Redis.from_url(queue_config.redis_url)
        try:
            await client.ping()
        except RedisError as e:
            await client.aclose()
            raise BrokerError(f"failed to connect to {queue_config.redis_url}: {e}") from e
        logger.info(f"🔌 已连接消息队列: {queue_config.redis_url}")
        return cls(client, queue_config)

    async def close(self):
        await self.redis.aclose()

    @property
    def chapter_queue(self) -> str:
        return self.config.chapter_queue

    @property
    def completed_queue(self) -> str:
        return self.config.completed_queue

    @staticmethod
    def processing_key(queue_name: str, consumer_tag: str) -> str:
        return f"{queue_name}:processing:{consumer_tag}"

    async def purge(self):
        """清空两个队列以及上次中断遗留的 processing 列表"""
        keys = [self.chapter_queue, self.completed_queue]
        for queue_name in (self.chapter_queue, self.completed_queue):
            async for key in self.redis.scan_iter(match=self.processing_key(queue_name, "*")):
                keys.append(key)
        await self.redis.delete(*keys)
        logger.info(f"🧹 已清空队列: {self.chapter_queue}, {self.completed_queue}")

    async def publish_job(self, payload: bytes):
        await self.redis.lpush(self.chapter_queue, payload)
        self.stats['jobs_published'] += 1

    async def publish_sentinel(self):
        """发布一条终止哨兵"""
        await self.redis.lpush(self.chapter_queue, SENTINEL)
        self.stats['sentinels_published'] += 1

    async def requeue_job(self, payload: bytes):
        """放回任务队列消费端（下一条被取走的消息）"""
        await self.redis.rpush(self.chapter_queue, payload)
        self.stats['jobs_requeued'] += 1

    async def publish_completion(self, payload: bytes):
        await self.redis.lpush(self.completed_queue, payload)
        self.stats['completions_published'] += 1

    async def consume(self, queue_name: str, consumer_tag: str) -> AsyncIterator[Delivery]:
        """
        逐条消费队列

        上一条消息未确认前不会拉取下一条。连接错误直接抛出，由调用方决定
        退出还是重新订阅。

        Args:
            queue_name: 队列名
            consumer_tag: 消费者标识

        Yields:
            Delivery
        """
        self._cancelled.discard(consumer_tag)
        processing_key = self.processing_key(queue_name, consumer_tag)

        while consumer_tag not in self._cancelled:
            data: Optional[bytes] = await self.redis.blmove(
                queue_name,
                processing_key,
                self.config.poll_timeout,
                src="RIGHT",
                dest="LEFT",
            )
            if data is None:
                continue
            yield Delivery(self, processing_key, data)

    async def cancel(self, consumer_tag: str):
        """取消订阅，迭代器在当前消息之后结束"""
        self._cancelled.add(consumer_tag)
        logger.debug(f"Consumer {consumer_tag} cancelled")

