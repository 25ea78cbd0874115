"""
队列消息编解码与数据模型测试
"""
import unittest

import msgpack
from pydantic import ValidationError

from core.errors import MalformedMessage
from core.messages import SENTINEL, decode_completion, decode_job, encode_completion, encode_job, is_sentinel
from core.models import Chapter, ChapterJob, CompletionKind, CompletionRecord

CHAPTER = Chapter(url="/chapters/2-10002000/example-manga-chapter-2", title="example-manga-chapter-0002")


class TestJobMessages(unittest.TestCase):
    """任务消息"""

    def test_job_keeps_attempt(self):
        job = decode_job(encode_job(ChapterJob(chapter=CHAPTER, attempt=2)))
        self.assertEqual(job.chapter, CHAPTER)
        self.assertEqual(job.attempt, 2)

    def test_attempt_defaults_to_zero(self):
        payload = msgpack.packb({"url": CHAPTER.url, "title": CHAPTER.title})
        self.assertEqual(decode_job(payload).attempt, 0)

    def test_empty_title_is_valid(self):
        job = decode_job(encode_job(ChapterJob(chapter=Chapter(url="/chapters/1", title=""))))
        self.assertEqual(job.chapter.title, "")

    def test_sentinel_is_not_a_job(self):
        self.assertTrue(is_sentinel(SENTINEL))
        self.assertFalse(is_sentinel(encode_job(ChapterJob(chapter=CHAPTER))))
        with self.assertRaises(MalformedMessage):
            decode_job(SENTINEL)

    def test_malformed_payloads(self):
        for payload in (b"", b"garbage", msgpack.packb([1, 2]), msgpack.packb({"url": "/x"})):
            with self.subTest(payload=payload):
                with self.assertRaises(MalformedMessage):
                    decode_job(payload)


class TestCompletionMessages(unittest.TestCase):
    """回执消息"""

    def test_partially_failed_record(self):
        job = ChapterJob(chapter=CHAPTER, attempt=1)
        record = decode_completion(encode_completion(CompletionRecord.partially_failed(job, [7, 2], requeued=True)))
        self.assertEqual(record.kind, CompletionKind.PARTIALLY_FAILED)
        self.assertEqual(record.failed_pages, [2, 7])
        self.assertTrue(record.requeued)
        self.assertFalse(record.is_terminal)

    def test_failed_record_keeps_reason(self):
        record = decode_completion(encode_completion(CompletionRecord.failed(ChapterJob(chapter=CHAPTER), "HTTP 404")))
        self.assertEqual(record.reason, "HTTP 404")
        self.assertFalse(record.is_success)

    def test_unknown_kind_rejected(self):
        payload = msgpack.packb({"kind": "exploded", "url": CHAPTER.url, "title": CHAPTER.title})
        with self.assertRaises(MalformedMessage):
            decode_completion(payload)


class TestModels(unittest.TestCase):
    """数据模型"""

    def test_chapter_str_is_title(self):
        self.assertEqual(str(CHAPTER), "example-manga-chapter-0002")

    def test_next_attempt(self):
        job = ChapterJob(chapter=CHAPTER)
        self.assertEqual(job.next_attempt().attempt, 1)
        self.assertEqual(job.attempt, 0)

    def test_negative_attempt_rejected(self):
        with self.assertRaises(ValidationError):
            ChapterJob(chapter=CHAPTER, attempt=-1)

    def test_completed_record_is_success(self):
        record = CompletionRecord.completed(ChapterJob(chapter=CHAPTER))
        self.assertTrue(record.is_success)
        self.assertTrue(record.is_terminal)
        self.assertEqual(record.failed_pages, [])


if __name__ == '__main__':
    unittest.main()
