"""
队列消息编解码

任务与回执使用 msgpack 紧凑二进制编码；终止哨兵是以 0xc1 开头的固定字节串，
0xc1 在 msgpack 中永不出现，因此不会与任何合法任务混淆。
"""
from typing import Union

import msgpack

from core.errors import MalformedMessage
from core.models import Chapter, ChapterJob, CompletionRecord

SENTINEL = b"\xc1chapter-queue:no-more-work"

Payload = Union[bytes, bytearray, memoryview]


def is_sentinel(data: Payload) -> bool:
    """是否为终止哨兵"""
    return bytes(data) == SENTINEL


def encode_job(job: ChapterJob) -> bytes:
    return msgpack.packb({
        "url": job.chapter.url,
        "title": job.chapter.title,
        "attempt": job.attempt,
    })


def decode_job(data: Payload) -> ChapterJob:
    """
    解码任务消息

    Raises:
        MalformedMessage: 不是合法的任务消息（包括哨兵）
    """
    fields = _unpack(data)
    try:
        chapter = Chapter(url=fields["url"], title=fields["title"])
        return ChapterJob(chapter=chapter, attempt=fields.get("attempt", 0))
    except (KeyError, ValueError) as e:
        raise MalformedMessage(f"invalid chapter job: {e}") from e


def encode_completion(record: CompletionRecord) -> bytes:
    return msgpack.packb({
        "kind": record.kind.value,
        "url": record.chapter.url,
        "title": record.chapter.title,
        "attempt": record.attempt,
        "failed_pages": list(record.failed_pages),
        "reason": record.reason,
        "requeued": record.requeued,
    })


def decode_completion(data: Payload) -> CompletionRecord:
    """
    解码回执消息

    Raises:
        MalformedMessage: 不是合法的回执消息
    """
    fields = _unpack(data)
    try:
        return CompletionRecord(
            kind=fields["kind"],
            chapter=Chapter(url=fields["url"], title=fields["title"]),
            attempt=fields.get("attempt", 0),
            failed_pages=fields.get("failed_pages") or [],
            reason=fields.get("reason"),
            requeued=fields.get("requeued", False),
        )
    except (KeyError, ValueError) as e:
        raise MalformedMessage(f"invalid completion record: {e}") from e


def _unpack(data: Payload) -> dict:
    try:
        fields = msgpack.unpackb(data)
    except (ValueError, msgpack.UnpackException) as e:
        raise MalformedMessage(f"undecodable payload: {e}") from e
    if not isinstance(fields, dict):
        raise MalformedMessage(f"unexpected payload type: {type(fields).__name__}")
    return fields
