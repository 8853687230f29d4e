"""
Tests for the chapter extraction cascade.

Strategy decisions are observed through structlog's captured events so the
tests can assert which tiers ran, not just the final text.
"""

import pytest
from structlog.testing import capture_logs

from novelscrape.config.config import ExtractionSettings
from novelscrape.extractor.novel_extractor import DEFAULT_TITLE, NovelExtractor
from tests.helpers.pages import CHAPTER_SENTENCE, chapter_page, chapter_text


def _events(logs, event):
    return [entry for entry in logs if entry["event"] == event]


def _page(body_html, title="测试小说 第1章 开端"):
    return f"<html><head><title>{title}</title></head><body>{body_html}</body></html>"


@pytest.mark.unit
class TestSelectorTier:
    def test_site_selector_wins_and_stops_cascade(self, chapter_html):
        with capture_logs() as logs:
            result = NovelExtractor().extract(chapter_html, "https://www.69shuba.com/txt/1/3")

        assert result.strategy == "selector:.txtnav"
        assert result.content.startswith("第3章 风起云涌")
        assert CHAPTER_SENTENCE in result.content

        started = _events(logs, "extraction.strategy_started")
        assert [entry["strategy"] for entry in started] == ["selector:.txtnav"]
        assert _events(logs, "extraction.candidate_accepted")[0]["tier"] == 1

    def test_page_chrome_outside_container_not_included(self, chapter_html):
        result = NovelExtractor().extract(chapter_html)

        assert "广告" not in result.content
        assert "上一章" not in result.content
        assert "tracking" not in result.content

    def test_paragraphs_become_lines(self, chapter_html):
        result = NovelExtractor().extract(chapter_html)

        lines = [line for line in result.content.split("\n") if line]
        assert lines[0] == "第3章 风起云涌"
        assert lines[1] == CHAPTER_SENTENCE

    def test_br_tags_become_newlines(self):
        body = "<br>".join([CHAPTER_SENTENCE] * 30)
        html = _page(f'<div id="content">第7章 雨夜<br/>{body}</div>')

        result = NovelExtractor().extract(html)

        assert result.strategy == "selector:#content"
        assert f"{CHAPTER_SENTENCE}\n{CHAPTER_SENTENCE}" in result.content

    def test_short_selector_match_falls_through(self):
        html = _page(f'<div class="txtnav">{CHAPTER_SENTENCE}</div>')

        with capture_logs() as logs:
            NovelExtractor().extract(html)

        rejected = _events(logs, "extraction.candidate_rejected")
        assert {"strategy": "selector:.txtnav", "reason": "too_short"}.items() <= rejected[0].items()

    def test_contaminated_selector_rejected_then_generic_container_used(self):
        chrome = "书页 | 目录 | 设置 | 白天"
        paragraphs = "".join(f"<p>{CHAPTER_SENTENCE}</p>" for _ in range(30))
        html = _page(f'<div class="txtnav"><p>{chrome}</p>{paragraphs}</div>')

        with capture_logs() as logs:
            result = NovelExtractor().extract(html)

        rejected = {entry["strategy"]: entry["reason"] for entry in _events(logs, "extraction.candidate_rejected")}
        assert rejected["selector:.txtnav"] == "contaminated"
        assert result.strategy == "longest_container"
        assert chrome in result.content

    def test_nested_matches_not_duplicated(self):
        inner = "".join(f"<p>{CHAPTER_SENTENCE}</p>" for _ in range(20))
        html = _page(f'<div class="content"><div class="content">{inner}</div></div>')

        result = NovelExtractor().extract(html)

        assert result.strategy == "selector:.content"
        assert result.content.count(CHAPTER_SENTENCE) == 20


@pytest.mark.unit
class TestChapterPatternTier:
    def test_chapter_marker_segment_extracted(self):
        paragraphs = "".join(f"<p>{CHAPTER_SENTENCE}</p>" for _ in range(40))
        html = _page(f"<section><h2>第12章 归来</h2>{paragraphs}</section>")

        with capture_logs() as logs:
            result = NovelExtractor().extract(html)

        assert result.strategy == "chapter_pattern:0"
        assert result.content.startswith("第12章 归来")
        tiers_started = {entry["tier"] for entry in _events(logs, "extraction.strategy_started")}
        assert tiers_started == {1, 2}

    def test_chinese_numeral_marker(self):
        paragraphs = "".join(f"<p>{CHAPTER_SENTENCE}</p>" for _ in range(40))
        html = _page(f"<section><h2>第十二章 归来</h2>{paragraphs}</section>")

        result = NovelExtractor().extract(html)

        assert result.strategy == "chapter_pattern:1"
        assert result.content.startswith("第十二章 归来")

    def test_short_chapter_match_falls_through(self):
        paragraphs = "".join(f"<p>{CHAPTER_SENTENCE * 2}</p>" for _ in range(5))
        html = _page(f"<section><h2>第12章 归来</h2>{paragraphs}</section>")

        result = NovelExtractor().extract(html)

        assert result.strategy == "leaf_fragments"
        assert "第12章" not in result.content


@pytest.mark.unit
class TestHeuristicTier:
    def test_longest_generic_container(self):
        blurb = "这是一段用来填充页面侧边区域的简介文字，让页面看起来更完整一些。"
        html = _page(
            f'<div class="main"><p>{blurb}</p></div>'
            f'<div class="wrapper"><p>{blurb}</p><p>{CHAPTER_SENTENCE * 3}</p></div>'
        )

        result = NovelExtractor().extract(html)

        assert result.strategy == "longest_container"
        assert CHAPTER_SENTENCE * 3 in result.content

    def test_leaf_fragments_skip_page_regions(self):
        long_text = CHAPTER_SENTENCE * 2
        html = _page(
            f'<div class="header-box"><p>页眉{long_text}</p></div>'
            f"<span>{long_text}</span>"
            f"<span>太短</span>"
            f"<span>{long_text}</span>"
        )

        result = NovelExtractor().extract(html)

        assert result.strategy == "leaf_fragments"
        assert result.content == f"{long_text}\n\n{long_text}"
        assert "页眉" not in result.content

    def test_leaf_fragments_capped(self):
        spans = "".join(f"<span>{i:02d}{CHAPTER_SENTENCE * 2}</span>" for i in range(30))
        settings = ExtractionSettings(max_leaf_fragments=5)

        result = NovelExtractor(settings).extract(_page(spans))

        assert result.content.count(CHAPTER_SENTENCE * 2) == 5

    def test_short_siblings_scored_separately(self):
        line = "他推开门，屋里空无一人，只有桌上那盏油灯还亮着。"
        html = _page("".join(f'<div class="text">{line}</div>' for _ in range(3)))

        with capture_logs() as logs:
            result = NovelExtractor().extract(html)

        rejected = {entry["strategy"]: entry["reason"] for entry in _events(logs, "extraction.candidate_rejected")}
        assert rejected["longest_container"] == "no_match"
        assert result.strategy is None


@pytest.mark.unit
class TestNoContent:
    def test_empty_page_reports_no_strategy(self):
        with capture_logs() as logs:
            result = NovelExtractor().extract("<html><body><p>这是一段很短的内容。</p></body></html>")

        assert result.strategy is None
        assert result.content == ""
        assert result.page_text_length == 10
        assert _events(logs, "extraction.no_content")

    def test_malformed_html_never_raises(self):
        result = NovelExtractor().extract("<div><p>unclosed <b>tags & stray </i> markup")

        assert result.strategy is None

    def test_noise_elements_removed_before_measuring(self):
        html = _page(
            f'<div class="ad-banner">{CHAPTER_SENTENCE * 5}</div>'
            f'<div id="nav_top">{CHAPTER_SENTENCE * 5}</div>'
            f"<nav>{CHAPTER_SENTENCE * 5}</nav>"
            f"<footer>{CHAPTER_SENTENCE * 5}</footer>"
        )

        result = NovelExtractor().extract(html)

        assert result.strategy is None
        assert result.page_text_length == 0

    def test_noise_markers_inside_class_and_id_removed(self):
        prose = CHAPTER_SENTENCE * 5
        html = _page(
            f'<div id="topbanner">{prose}</div>'
            f'<div class="sidenav">{prose}</div>'
            f'<div class="mainmenu">{prose}</div>'
            f'<div id="leftad">{prose}</div>'
        )

        result = NovelExtractor().extract(html)

        assert result.strategy is None
        assert result.page_text_length == 0

    def test_content_container_with_noise_like_name_kept(self):
        html = chapter_page(chapter_text(), container='class="readnav"')

        result = NovelExtractor().extract(html)

        assert result.strategy == 'selector:div[class*="read"]'
        assert CHAPTER_SENTENCE in result.content


@pytest.mark.unit
class TestTitle:
    def test_title_tag_preferred(self, chapter_html):
        assert NovelExtractor().extract(chapter_html).title == "第3章 风起云涌_测试小说_69书吧"

    def test_short_title_falls_back_to_h1(self):
        html = f"<html><head><title>短</title></head><body><h1>第一章 少年出山</h1><p>{CHAPTER_SENTENCE}</p></body></html>"

        assert NovelExtractor().extract(html).title == "第一章 少年出山"

    def test_title_selector_fallback(self):
        html = f'<html><body><div class="bookname">  第九章   夜探 </div><p>{CHAPTER_SENTENCE}</p></body></html>'

        assert NovelExtractor().extract(html).title == "第九章 夜探"

    def test_default_title(self):
        assert NovelExtractor().extract("<html><body><p>正文</p></body></html>").title == DEFAULT_TITLE


@pytest.mark.unit
def test_extraction_is_deterministic():
    html = chapter_page(chapter_text(sentences=40))
    extractor = NovelExtractor()

    first = extractor.extract(html, "https://www.69shuba.com/txt/1/3")
    second = extractor.extract(html, "https://www.69shuba.com/txt/1/3")

    assert first == second
