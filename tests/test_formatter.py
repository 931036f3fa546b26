"""Tests for log_timeline/formatter.py"""

import calendar
import json
import unittest
from datetime import date

from log_timeline.entities import build_entity_index
from log_timeline.formatter import (
    RESET,
    format_color,
    format_entities_json,
    format_entity_summary,
    format_html,
    format_json,
    format_text,
    format_timestamp,
    get_formatter,
    level_badge,
    render_message,
)
from log_timeline.models import LogEvent, Source

DAY_MS = calendar.timegm(date(2025, 11, 21).timetuple()) * 1000
TS = DAY_MS + ((14 * 60 + 30) * 60 + 45) * 1000 + 123
DOC_ID = "baedreic7dvjvssmh6b62azkrx6o4wmymbbwffgx3brpte2ykm3y6ukepzm"


def _event(message="Stored doc", level="ERROR", module="memory", source=Source.SERVER, ts=TS) -> LogEvent:
    return LogEvent(timestamp=ts, level=level, module=module, message=message, source=source)


class TestFormatTimestamp(unittest.TestCase):
    def test_time_of_day(self):
        self.assertEqual(format_timestamp(TS), "14:30:45.123")

    def test_pads_milliseconds(self):
        self.assertEqual(format_timestamp(DAY_MS + 7), "00:00:00.007")

    def test_out_of_range_falls_back_to_number(self):
        self.assertEqual(format_timestamp(10**20), "100000000000000000000")
        self.assertEqual(format_timestamp(-(10**20)), "-100000000000000000000")

    def test_out_of_range_event_still_renders(self):
        line = format_text(_event(ts=10**20))
        self.assertTrue(line.startswith("[100000000000000000000] [server] ERROR"))


class TestLineFormatters(unittest.TestCase):
    def test_text(self):
        self.assertEqual(
            format_text(_event()),
            "[14:30:45.123] [server] ERROR memory: Stored doc",
        )

    def test_json_is_single_line(self):
        line = format_json(_event(message="line one\nline two"))
        self.assertNotIn("\n", line)
        data = json.loads(line)
        self.assertEqual(data["timestamp"], TS)
        self.assertEqual(data["time"], "14:30:45.123")
        self.assertEqual(data["source"], "server")
        self.assertEqual(data["level"], "ERROR")
        self.assertEqual(data["message"], "line one\nline two")

    def test_color_wraps_level(self):
        line = format_color(_event(level="error"))
        self.assertIn("\033[31merror" + RESET, line)

    def test_color_unknown_level(self):
        line = format_color(_event(level="trace"))
        self.assertIn("trace" + RESET, line)

    def test_get_formatter(self):
        self.assertIs(get_formatter("json"), format_json)
        self.assertIs(get_formatter("json", color=True), format_json)
        self.assertIs(get_formatter("text", color=True), format_color)
        self.assertIs(get_formatter(), format_text)


class TestHtml(unittest.TestCase):
    def test_level_badge_case_insensitive(self):
        self.assertEqual(level_badge("error"), level_badge("ERROR"))
        self.assertEqual(level_badge("unknown"), "bg-gray-100 text-gray-800")

    def test_render_escapes_markup(self):
        self.assertEqual(render_message("<script>alert(1)</script>"), "&lt;script&gt;alert(1)&lt;/script&gt;")

    def test_render_linkifies_ids(self):
        result = render_message(f"Stored doc {DOC_ID}")
        self.assertIn(f'data-id="{DOC_ID}"', result)
        self.assertIn('class="clickable-id"', result)

    def test_render_highlights_outside_tags(self):
        result = render_message(f"Stored doc {DOC_ID}", "stored")
        self.assertTrue(result.startswith('<mark class="bg-yellow-200">Stored</mark> doc <span'))
        self.assertIn(f'data-id="{DOC_ID}"', result)

    def test_render_does_not_mark_inside_character_references(self):
        self.assertEqual(render_message("Tom & Jerry", "amp"), "Tom &amp; Jerry")
        self.assertEqual(render_message("if a < b", "lt"), "if a &lt; b")

    def test_render_marks_text_around_character_references(self):
        self.assertEqual(
            render_message("Tom & Jerry", "jerry"),
            'Tom &amp; <mark class="bg-yellow-200">Jerry</mark>',
        )
        self.assertEqual(
            render_message("a < b", "ab"),
            '<mark class="bg-yellow-200">a</mark> &lt; <mark class="bg-yellow-200">b</mark>',
        )

    def test_card_id_and_badges(self):
        card = format_html(_event(source=Source.CLIENT), 3)
        self.assertTrue(card.startswith('<div id="event-3" class="event-card">'))
        self.assertIn('<span class="bg-blue-100 text-blue-800">client</span>', card)
        self.assertIn('<span class="bg-red-100 text-red-800">ERROR</span>', card)
        self.assertIn("14:30:45.123", card)

    def test_current_match_card(self):
        card = format_html(_event(), 0, "stored", is_current_match=True)
        self.assertIn('class="event-card current-match"', card)
        self.assertIn('<mark class="bg-yellow-200">Stored</mark>', card)

    def test_custom_mark_class(self):
        card = format_html(_event(), 0, "stored", mark_class="hit")
        self.assertIn('<mark class="hit">Stored</mark>', card)


class TestEntityOutput(unittest.TestCase):
    def setUp(self):
        self.index = build_entity_index([
            _event(f"Stored doc {DOC_ID}", ts=TS),
            _event(f"Read doc {DOC_ID}", ts=TS + 1000),
        ])

    def test_summary(self):
        summary = format_entity_summary(self.index)
        lines = summary.split("\n")
        self.assertEqual(lines[0], "Entities: 1")
        self.assertIn("DocIDs (1):", lines)
        self.assertIn("CharmIDs (0):", lines)
        self.assertIn("SpaceIDs (0):", lines)
        self.assertIn(f"  {DOC_ID}  events=2 first=14:30:45.123 last=14:30:46.123", lines)

    def test_summary_truncates(self):
        ids = [f"baedrei{str(i) * 50}" for i in range(3)]
        index = build_entity_index([_event(f"doc {i}") for i in ids])
        summary = format_entity_summary(index, limit=2)
        self.assertIn("  ... 1 more", summary)
        self.assertNotIn(ids[2], summary)

    def test_json(self):
        data = json.loads(format_entities_json(self.index))
        self.assertEqual(data["total_entities"], 1)
        self.assertEqual(data["by_type"]["doc_id"], [DOC_ID])
        info = data["entities"][DOC_ID]
        self.assertEqual(info["type"], "doc_id")
        self.assertEqual(info["event_count"], 2)
        self.assertEqual(info["event_timestamps"], [TS, TS + 1000])


if __name__ == "__main__":
    unittest.main()
