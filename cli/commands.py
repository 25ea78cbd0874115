"""
CLI命令定义（argparse）
"""
import argparse


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"必须是正整数: {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """
    创建调度进程命令行参数解析器

    Returns:
        ArgumentParser 实例
    """
    parser = argparse.ArgumentParser(
        prog='scraper.py',
        description='Mangapill 章节下载器（调度进程）',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
示例:
  # 交互式选择章节，单个 worker
  python scraper.py 2

  # 4 个 worker 下载第 2-3 章（按列表序号，从 1 开始）
  python scraper.py 2 -w 4 --chapters 2-3

  # 下载全部章节到指定目录
  python scraper.py 2 -w 8 --all -o downloads
        '''
    )

    parser.add_argument('title_id', type=int, help='作品ID（数字）')
    parser.add_argument('-w', '--workers', type=positive_int, default=1,
                        help='worker 进程数（默认：1）')

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument('--chapters', type=str, default=None,
                           help='章节范围，如 "2-3" 或 "5"（跳过交互选择）')
    selection.add_argument('--all', action='store_true',
                           help='下载全部章节（跳过交互选择）')

    parser.add_argument('-o', '--output', type=str, default=None,
                        help='下载根目录（默认取配置 OUTPUT_DIR）')
    parser.add_argument('--log-level', type=str, default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='控制台日志级别')

    return parser


def create_worker_parser() -> argparse.ArgumentParser:
    """创建 worker 进程命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='worker.py',
        description='Mangapill 章节下载 worker（由调度进程启动）',
    )
    parser.add_argument('manga_path', type=str, help='作品输出目录')
    return parser
