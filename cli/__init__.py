"""
CLI模块

包含命令行接口相关功能：
- commands: argparse 定义
- handlers: 命令处理函数
- selection: 章节选择
"""
from cli.handlers import (
    handle_download,
    handle_worker,
    run_worker,
    print_report,
)
from cli.commands import create_parser, create_worker_parser
from cli.selection import select_chapters, parse_chapter_range

__all__ = [
    'handle_download',
    'handle_worker',
    'run_worker',
    'print_report',
    'create_parser',
    'create_worker_parser',
    'select_chapters',
    'parse_chapter_range',
]
