"""
CLI commands 单元测试
"""
import unittest
from cli.commands import create_parser, create_worker_parser


class TestCreateParser(unittest.TestCase):
    """create_parser 测试"""

    def test_title_id_required(self):
        """缺少作品ID时报错"""
        with self.assertRaises(SystemExit):
            create_parser().parse_args([])

    def test_defaults(self):
        args = create_parser().parse_args(["2"])
        self.assertEqual(args.title_id, 2)
        self.assertEqual(args.workers, 1)
        self.assertIsNone(args.chapters)
        self.assertFalse(args.all)
        self.assertIsNone(args.output)

    def test_non_numeric_title_id_rejected(self):
        with self.assertRaises(SystemExit):
            create_parser().parse_args(["example-manga"])

    def test_workers_and_range(self):
        args = create_parser().parse_args(["2", "-w", "4", "--chapters", "2-3", "-o", "downloads"])
        self.assertEqual(args.workers, 4)
        self.assertEqual(args.chapters, "2-3")
        self.assertEqual(args.output, "downloads")

    def test_zero_workers_rejected(self):
        with self.assertRaises(SystemExit):
            create_parser().parse_args(["2", "--workers", "0"])

    def test_chapters_and_all_mutually_exclusive(self):
        with self.assertRaises(SystemExit):
            create_parser().parse_args(["2", "--chapters", "1", "--all"])

    def test_log_level(self):
        args = create_parser().parse_args(["2", "--all", "--log-level", "DEBUG"])
        self.assertTrue(args.all)
        self.assertEqual(args.log_level, "DEBUG")


class TestCreateWorkerParser(unittest.TestCase):
    """create_worker_parser 测试"""

    def test_manga_path(self):
        args = create_worker_parser().parse_args(["tmp/example-manga"])
        self.assertEqual(args.manga_path, "tmp/example-manga")

    def test_manga_path_required(self):
        with self.assertRaises(SystemExit):
            create_worker_parser().parse_args([])


if __name__ == '__main__':
    unittest.main()
