"""
核心模块

包含基础组件：
- models: 章节、任务、回执数据模型
- errors: 异常定义
- messages: 队列消息编解码
- job_queue: Redis 任务队列
- tracker: 完成回执跟踪器
- downloader: 单页下载器与章节下载器
- worker: 章节下载 worker
- dispatcher: 调度器

downloader / worker / dispatcher 依赖 spiders 与 parsers，需按子模块导入。
"""
from .models import Chapter, ChapterJob, CompletionKind, CompletionRecord, MangaInfo
from .job_queue import JobQueue, Delivery
from .tracker import CompletionTracker

__all__ = [
    'Chapter',
    'ChapterJob',
    'CompletionKind',
    'CompletionRecord',
    'MangaInfo',
    'JobQueue',
    'Delivery',
    'CompletionTracker',
]
