"""
章节选择

交互式终端提示，或通过 --chapters / --all 直接指定。
序号从 1 开始，对应最早的章节。
"""
import re
from typing import Callable, List, Optional, Tuple

from core.errors import InvalidChapterSelection
from core.models import Chapter

RANGE_PATTERN = re.compile(r'^\s*(\d+)\s*(?:-\s*(\d+)\s*)?$')


def parse_chapter_range(text: str, count: int) -> Tuple[int, int]:
    """
    解析章节范围

    Args:
        text: "a-b" 或 "a"（从 1 开始，闭区间）
        count: 章节总数

    Returns:
        (start, end)，从 1 开始的闭区间

    Raises:
        InvalidChapterSelection: 为空、格式错误或越界
    """
    if not text or not text.strip():
        raise InvalidChapterSelection()

    match = RANGE_PATTERN.match(text)
    if not match:
        raise InvalidChapterSelection(f"invalid chapter range: {text!r}")

    start = int(match.group(1))
    end = int(match.group(2) or start)
    if start < 1 or end > count or start > end:
        raise InvalidChapterSelection(f"chapter range {start}-{end} outside 1-{count}")
    return start, end


def prompt_chapter_range(chapters: List[Chapter], prompt: Callable[[str], str] = input) -> Tuple[int, int]:
    """
    交互式选择章节范围

    Raises:
        InvalidChapterSelection: 用户取消或输入为空
    """
    print("\n" + "=" * 60)
    for index, chapter in enumerate(chapters, 1):
        print(f"  {index:>4}  {chapter.title}")
    print("=" * 60)

    try:
        answer = prompt(f"选择章节范围 (1-{len(chapters)}，如 2-3，留空取消): ")
    except (EOFError, KeyboardInterrupt) as e:
        raise InvalidChapterSelection("chapter selection aborted") from e
    return parse_chapter_range(answer, len(chapters))


def select_chapters(
    chapters: List[Chapter],
    chapter_range: Optional[str] = None,
    select_all: bool = False,
    prompt: Callable[[str], str] = input
) -> List[Chapter]:
    """
    选择要下载的章节

    Args:
        chapters: 全部章节（最早在前）
        chapter_range: 非交互范围字符串
        select_all: 选择全部
        prompt: 交互输入函数

    Returns:
        选中的章节

    Raises:
        InvalidChapterSelection: 选择为空或被取消
    """
    if not chapters:
        raise InvalidChapterSelection("no chapters to select from")
    if select_all:
        return list(chapters)

    if chapter_range is not None:
        start, end = parse_chapter_range(chapter_range, len(chapters))
    else:
        start, end = prompt_chapter_range(chapters, prompt)
    return list(chapters[start - 1:end])
