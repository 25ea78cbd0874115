"""
数据模型

- Chapter: 章节（相对URL + 规范化标题），任务与回执的身份标识
- ChapterJob: 任务消息（章节 + 尝试次数）
- CompletionRecord: 回执消息（Completed / PartiallyFailed / Failed）
- MangaInfo: 作品信息与章节列表
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Chapter(BaseModel):
    """章节"""
    model_config = ConfigDict(frozen=True)

    url: str
    title: str

    def __str__(self) -> str:
        return self.title


class ChapterJob(BaseModel):
    """章节下载任务"""
    model_config = ConfigDict(frozen=True)

    chapter: Chapter
    attempt: int = Field(default=0, ge=0)

    def next_attempt(self) -> "ChapterJob":
        return ChapterJob(chapter=self.chapter, attempt=self.attempt + 1)


class CompletionKind(str, Enum):
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"
    FAILED = "failed"


class CompletionRecord(BaseModel):
    """
    章节完成回执

    requeued=True 表示 worker 已将任务重新放回队列，此回执仅用于记录，
    不推进完成计数。
    """
    model_config = ConfigDict(frozen=True)

    kind: CompletionKind
    chapter: Chapter
    attempt: int = 0
    failed_pages: List[int] = Field(default_factory=list)
    reason: Optional[str] = None
    requeued: bool = False

    @classmethod
    def completed(cls, job: ChapterJob) -> "CompletionRecord":
        return cls(kind=CompletionKind.COMPLETED, chapter=job.chapter, attempt=job.attempt)

    @classmethod
    def partially_failed(cls, job: ChapterJob, failed_pages: List[int], requeued: bool = False) -> "CompletionRecord":
        return cls(
            kind=CompletionKind.PARTIALLY_FAILED,
            chapter=job.chapter,
            attempt=job.attempt,
            failed_pages=sorted(failed_pages),
            requeued=requeued,
        )

    @classmethod
    def failed(cls, job: ChapterJob, reason: str, requeued: bool = False) -> "CompletionRecord":
        return cls(
            kind=CompletionKind.FAILED,
            chapter=job.chapter,
            attempt=job.attempt,
            reason=reason,
            requeued=requeued,
        )

    @property
    def is_terminal(self) -> bool:
        return not self.requeued

    @property
    def is_success(self) -> bool:
        return self.kind == CompletionKind.COMPLETED


class MangaInfo(BaseModel):
    """作品信息（爬取阶段的结果）"""
    title_id: str
    title_url: str
    canonical_url: str
    slug: str
    display_name: str
    chapters: List[Chapter] = Field(default_factory=list)
