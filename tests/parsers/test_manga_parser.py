"""
MangaParser 单元测试
"""
import unittest

from config import SiteConfig
from parsers.manga_parser import MangaParser, normalize_titles, slugify


def chapter_list_html(titles):
    """站点按最新在前排列"""
    anchors = "\n".join(
        f'<a href="/chapters/2-1{n:04d}000/example-manga-chapter-{n}" title="Example Manga Chapter {n}">Chapter {n}</a>'
        for n in reversed(titles)
    )
    return f"""
    <html><body>
    <h1 class="font-bold">Example Manga</h1>
    <div id="chapters">{anchors}</div>
    </body></html>
    """


class TestNormalizeTitles(unittest.TestCase):
    """normalize_titles 测试"""

    def test_pads_to_four_digits_by_default(self):
        titles = normalize_titles(["Chapter 9", "Chapter 10"])
        self.assertEqual(titles, ["chapter-0009", "chapter-0010"])

    def test_lexical_order_matches_numeric_order(self):
        numbers = [1, 2, 9, 10, 11, 99, 100, 101]
        titles = normalize_titles([f"Chapter {n}" for n in numbers])
        self.assertEqual(titles, sorted(titles))
        self.assertTrue(titles[2].endswith("009"))
        self.assertTrue(titles[3].endswith("010"))

    def test_fractional_chapters_sort_between_neighbours(self):
        raw = ["Chapter 10", "Chapter 10.5", "Chapter 10.25", "Chapter 11"]
        titles = normalize_titles(raw)
        self.assertEqual(titles[1], "chapter-0010.50")
        self.assertEqual(titles[2], "chapter-0010.25")
        self.assertEqual(sorted(titles), [titles[0], titles[2], titles[1], titles[3]])

    def test_width_grows_with_longest_number(self):
        titles = normalize_titles(["Chapter 5", "Chapter 12345"])
        self.assertEqual(titles, ["chapter-00005", "chapter-12345"])

    def test_path_separators_replaced(self):
        self.assertEqual(slugify("Vol 1/Chapter 2\\Part"), "vol-1-chapter-2-part")

    def test_title_without_number(self):
        self.assertEqual(normalize_titles(["Oneshot", ""]), ["oneshot", ""])


class TestMangaParserChapterList(unittest.TestCase):
    """parse_chapter_list 测试"""

    def setUp(self):
        self.parser = MangaParser(SiteConfig())

    def test_oldest_first(self):
        chapters = self.parser.parse_chapter_list(chapter_list_html(range(1, 13)))
        self.assertEqual(len(chapters), 12)
        self.assertEqual(chapters[0].title, "example-manga-chapter-0001")
        self.assertEqual(chapters[-1].title, "example-manga-chapter-0012")
        self.assertTrue(chapters[0].url.startswith("/chapters/"))

    def test_titles_strictly_increasing(self):
        chapters = self.parser.parse_chapter_list(chapter_list_html(range(1, 25)))
        titles = [c.title for c in chapters]
        self.assertEqual(titles, sorted(titles))
        self.assertEqual(len(set(titles)), len(titles))

    def test_missing_title_attribute_yields_empty_title(self):
        html = '<div id="chapters"><a href="/chapters/2/b" title="Chapter 2">2</a><a href="/chapters/1/a">1</a></div>'
        chapters = self.parser.parse_chapter_list(html)
        self.assertEqual(len(chapters), 2)
        self.assertEqual(chapters[0].title, "")
        self.assertEqual(chapters[0].url, "/chapters/1/a")
        self.assertEqual(chapters[1].title, "chapter-0002")

    def test_no_container_returns_empty_list(self):
        self.assertEqual(self.parser.parse_chapter_list("<html><body></body></html>"), [])


class TestMangaParserPageImages(unittest.TestCase):
    """parse_page_images 测试"""

    def setUp(self):
        self.parser = MangaParser(SiteConfig())

    def test_src_preferred_then_data_src(self):
        html = """
        <div><chapter-page><img src="https://cdn.example/1.jpeg" data-src="https://cdn.example/ignored.jpeg"></chapter-page></div>
        <div><chapter-page><img data-src="https://cdn.example/2.jpeg"></chapter-page></div>
        """
        urls = self.parser.parse_page_images(html)
        self.assertEqual(urls, ["https://cdn.example/1.jpeg", "https://cdn.example/2.jpeg"])

    def test_element_without_url_is_skipped(self):
        html = """
        <chapter-page><img src="https://cdn.example/1.jpeg"></chapter-page>
        <chapter-page><img alt="broken"></chapter-page>
        <chapter-page><img src="https://cdn.example/3.jpeg"></chapter-page>
        """
        urls = self.parser.parse_page_images(html)
        self.assertEqual(urls, ["https://cdn.example/1.jpeg", "https://cdn.example/3.jpeg"])

    def test_duplicate_urls_kept(self):
        html = '<chapter-page><img src="https://x/a.jpg"></chapter-page><chapter-page><img src="https://x/a.jpg"></chapter-page>'
        self.assertEqual(len(self.parser.parse_page_images(html)), 2)

    def test_relative_url_resolved(self):
        html = '<chapter-page><img src="/img/1.jpg"></chapter-page>'
        urls = self.parser.parse_page_images(html, "https://mangapill.com/chapters/1/a")
        self.assertEqual(urls, ["https://mangapill.com/img/1.jpg"])


class TestMangaParserDisplayName(unittest.TestCase):
    """parse_display_name 测试"""

    def test_display_name(self):
        parser = MangaParser()
        self.assertEqual(parser.parse_display_name(chapter_list_html([1])), "Example Manga")

    def test_missing_display_name_raises(self):
        from core.errors import ParseError
        with self.assertRaises(ParseError):
            MangaParser().parse_display_name("<html></html>")


if __name__ == '__main__':
    unittest.main()
