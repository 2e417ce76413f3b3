"""Viewport engine tests: full render, incremental scrolling, links, item highlight."""

from __future__ import annotations

import random
import unittest

from fakes import ScreenSurface

from wikipane.ansi import ITEM_HIGHLIGHT, REVERSE
from wikipane.pane import Pane
from wikipane.store import ContentItem
from wikipane.wrap import DisplayLine, wrap_items

COLUMNS = 40
ROWS = 7  # header + 5 content rows + status


def _numbered_lines(count: int) -> list[DisplayLine]:
    return [DisplayLine(f"line {index}", index) for index in range(count)]


def _make_pane(lines: list[DisplayLine], rows: int = ROWS) -> tuple[Pane, ScreenSurface]:
    surface = ScreenSurface(COLUMNS, rows)
    return Pane(lines, (COLUMNS, rows), surface, header="local: w -- page |*|"), surface


def _expected_content(lines: list[DisplayLine], offset: int, content_rows: int) -> list[str]:
    visible = [line.text for line in lines[offset:offset + content_rows]]
    return visible + [""] * (content_rows - len(visible))


class PaneRenderTests(unittest.TestCase):
    def test_construction_starts_at_top_with_equal_buffers(self) -> None:
        lines = _numbered_lines(3)
        pane, _surface = _make_pane(lines)

        self.assertEqual(pane.scroll_offset, 0)
        self.assertEqual(pane.rendered, lines)
        self.assertIsNone(pane.search)
        self.assertIsNone(pane.highlighted_index)

    def test_render_draws_reverse_header_and_first_content_rows(self) -> None:
        pane, surface = _make_pane(_numbered_lines(12))

        pane.render()

        self.assertTrue(surface.grid[0].startswith(REVERSE))
        self.assertEqual(surface.plain(0).strip(), "local: w -- page |*|")
        self.assertEqual(len(surface.plain(0)), COLUMNS)
        self.assertEqual(surface.content(), [f"line {index}" for index in range(5)])
        self.assertEqual(surface.plain(ROWS - 1), "")
        self.assertEqual(surface.flushes, 1)

    def test_render_blanks_rows_past_the_end(self) -> None:
        pane, surface = _make_pane(_numbered_lines(2))
        surface.grid = ["junk"] * ROWS

        pane.render()

        self.assertEqual(surface.content(), ["line 0", "line 1", "", "", ""])


class PaneScrollTests(unittest.TestCase):
    def test_scroll_down_repaints_only_header_and_exposed_row(self) -> None:
        pane, surface = _make_pane(_numbered_lines(12))
        pane.render()
        surface.ops.clear()

        self.assertTrue(pane.scroll_down())

        self.assertEqual(pane.scroll_offset, 1)
        self.assertIn(("scroll_up", 1), surface.ops)
        self.assertEqual(set(surface.written_rows()), {0, 5})
        self.assertEqual(surface.content(), [f"line {index}" for index in range(1, 6)])
        self.assertEqual(surface.plain(0).strip(), "local: w -- page |*|")

    def test_scroll_up_repaints_only_header_and_exposed_row(self) -> None:
        pane, surface = _make_pane(_numbered_lines(12))
        pane.render()
        pane.scroll_down(2)
        surface.ops.clear()

        self.assertTrue(pane.scroll_up())

        self.assertEqual(pane.scroll_offset, 1)
        self.assertIn(("scroll_down", 1), surface.ops)
        self.assertEqual(set(surface.written_rows()), {0, 1})
        self.assertEqual(surface.content(), [f"line {index}" for index in range(1, 6)])

    def test_scroll_down_then_up_restores_offset_and_screen(self) -> None:
        lines = _numbered_lines(12)
        pane, surface = _make_pane(lines)
        pane.render()
        before = list(surface.grid)

        pane.scroll_down()
        pane.scroll_up()

        self.assertEqual(pane.scroll_offset, 0)
        self.assertEqual(surface.content(), _expected_content(lines, 0, 5))
        self.assertEqual(surface.grid[1:ROWS - 1], before[1:ROWS - 1])

    def test_scroll_down_stops_when_last_line_reaches_bottom_row(self) -> None:
        pane, surface = _make_pane(_numbered_lines(7))
        pane.render()

        moves = [pane.scroll_down() for _ in range(5)]

        self.assertEqual(moves, [True, True, False, False, False])
        self.assertEqual(pane.scroll_offset, 2)
        self.assertEqual(surface.content(), [f"line {index}" for index in range(2, 7)])

    def test_scroll_up_at_top_is_a_noop(self) -> None:
        pane, surface = _make_pane(_numbered_lines(12))
        pane.render()
        surface.ops.clear()
        flushes = surface.flushes

        self.assertFalse(pane.scroll_up())

        self.assertEqual(surface.ops, [])
        self.assertEqual(surface.flushes, flushes)

    def test_large_scroll_is_clamped_and_falls_back_to_full_render(self) -> None:
        pane, surface = _make_pane(_numbered_lines(20))
        pane.render()
        surface.ops.clear()

        self.assertTrue(pane.scroll_down(40))

        self.assertEqual(pane.scroll_offset, 15)
        self.assertNotIn(("scroll_up", 40), surface.ops)
        self.assertEqual(surface.content(), [f"line {index}" for index in range(15, 20)])

    def test_empty_pane_never_scrolls(self) -> None:
        pane, _surface = _make_pane([])

        self.assertFalse(pane.scroll_down())
        self.assertFalse(pane.scroll_up())
        self.assertEqual(pane.scroll_offset, 0)

    def test_random_scrolls_keep_offset_in_bounds_and_screen_in_sync(self) -> None:
        rng = random.Random(7)
        for count in (0, 1, 4, 5, 6, 23):
            lines = _numbered_lines(count)
            pane, surface = _make_pane(lines)
            pane.render()
            for _ in range(60):
                amount = rng.randint(1, 3)
                if rng.random() < 0.5:
                    pane.scroll_down(amount)
                else:
                    pane.scroll_up(amount)
                self.assertGreaterEqual(pane.scroll_offset, 0)
                self.assertLessEqual(pane.scroll_offset, max(0, count - 1))
                self.assertEqual(surface.content(), _expected_content(lines, pane.scroll_offset, 5))


class PaneLinkTests(unittest.TestCase):
    def _link_pane(self) -> Pane:
        lines = [DisplayLine("Intro", 0), DisplayLine("See [[Topic A]] for more", 1), DisplayLine("", None)]
        pane, _surface = _make_pane(lines, rows=10)
        return pane

    def test_click_inside_brackets_returns_link_target(self) -> None:
        self.assertEqual(self._link_pane().find_link(8, 1), "Topic A")

    def test_click_before_any_bracket_returns_none(self) -> None:
        self.assertIsNone(self._link_pane().find_link(2, 1))

    def test_click_after_closer_or_past_line_end_returns_none(self) -> None:
        pane = self._link_pane()

        self.assertIsNone(pane.find_link(18, 1))
        self.assertIsNone(pane.find_link(30, 1))

    def test_click_outside_content_rows_returns_none(self) -> None:
        pane = self._link_pane()

        self.assertIsNone(pane.find_link(1, 2))
        self.assertIsNone(pane.find_link(1, 7))
        self.assertIsNone(pane.find_link(1, -1))

    def test_unclosed_opener_is_not_a_link(self) -> None:
        pane, _surface = _make_pane([DisplayLine("broken [[link here", 0)])

        self.assertIsNone(pane.find_link(10, 0))

    def test_lookup_follows_scroll_offset(self) -> None:
        lines = _numbered_lines(10) + [DisplayLine("go [[Home]]", 10)]
        pane, _surface = _make_pane(lines)
        pane.scroll_down(6)

        self.assertEqual(pane.find_link(5, 4), "Home")


class PaneItemHighlightTests(unittest.TestCase):
    def _wrapped_pane(self) -> Pane:
        lines = [
            DisplayLine("a0", 0),
            DisplayLine("a1", 0),
            DisplayLine("a2", 0),
            DisplayLine("b0", 1),
        ] + [DisplayLine(f"c{index}", index + 2) for index in range(16)]
        pane, _surface = _make_pane(lines)
        pane.render()
        return pane

    def test_highlight_span_covers_every_wrapped_row(self) -> None:
        items = [
            ContentItem(id="a", type="paragraph", text="one two three four"),
            ContentItem(id="b", type="paragraph", text="five"),
        ]
        pane, _surface = _make_pane(wrap_items(items, 9))

        self.assertEqual(pane.highlight_span(0), (0, 2))
        self.assertEqual(pane.highlight_span(1), (4, 4))
        self.assertIsNone(pane.highlight_span(2))

    def test_toggle_highlights_first_visible_item_span(self) -> None:
        pane = self._wrapped_pane()

        self.assertTrue(pane.toggle_item_highlight())

        self.assertEqual(pane.highlighted_index, 0)
        for index in range(3):
            self.assertIn(ITEM_HIGHLIGHT, pane.rendered[index].text)
        self.assertEqual(pane.rendered[3].text, "b0")
        self.assertEqual(pane.lines[0].text, "a0")

    def test_moving_to_shorter_next_item_scrolls_by_previous_span(self) -> None:
        pane = self._wrapped_pane()
        pane.toggle_item_highlight()

        self.assertTrue(pane.move_highlight(1))

        self.assertEqual(pane.scroll_offset, 3)
        self.assertEqual(pane.highlighted_index, 1)
        self.assertEqual([line.text for line in pane.rendered[:3]], ["a0", "a1", "a2"])
        self.assertIn(ITEM_HIGHLIGHT, pane.rendered[3].text)

    def test_step_past_wrapped_item_includes_separator_row(self) -> None:
        items = [ContentItem(id="a", type="paragraph", text="one two three four")] + [
            ContentItem(id=str(index), type="paragraph", text=f"item {index}") for index in range(1, 8)
        ]
        pane, surface = _make_pane(wrap_items(items, 9))
        pane.render()
        pane.toggle_item_highlight()

        self.assertTrue(pane.move_highlight(1))

        # Three wrapped rows plus the blank row after the item.
        self.assertEqual(pane.scroll_offset, 4)
        self.assertEqual(surface.plain(1).rstrip(), "item 1")
        self.assertIn(ITEM_HIGHLIGHT, pane.rendered[4].text)

    def test_moving_back_scrolls_up_by_the_same_distance(self) -> None:
        pane = self._wrapped_pane()
        pane.toggle_item_highlight()
        pane.move_highlight(1)

        self.assertTrue(pane.move_highlight(-1))

        self.assertEqual(pane.scroll_offset, 0)
        self.assertEqual(pane.highlighted_index, 0)
        self.assertEqual(pane.rendered[3].text, "b0")

    def test_move_before_first_item_is_refused(self) -> None:
        pane = self._wrapped_pane()
        pane.toggle_item_highlight()
        pane.move_highlight(-1)

        self.assertEqual(pane.highlighted_index, 0)
        self.assertFalse(pane.move_highlight(-1))

    def test_toggle_off_restores_canonical_text(self) -> None:
        pane = self._wrapped_pane()
        pane.toggle_item_highlight()

        self.assertFalse(pane.toggle_item_highlight())

        self.assertIsNone(pane.highlighted_index)
        self.assertEqual(pane.rendered, list(pane.lines))

    def test_reset_line_unstyles_span(self) -> None:
        pane = self._wrapped_pane()
        pane.toggle_item_highlight()

        pane.reset_line(0)

        self.assertEqual(pane.rendered[:3], list(pane.lines[:3]))

    def test_replace_lines_resets_state(self) -> None:
        pane = self._wrapped_pane()
        pane.toggle_item_highlight()
        pane.move_highlight(1)

        pane.replace_lines(_numbered_lines(3))

        self.assertEqual(pane.scroll_offset, 0)
        self.assertIsNone(pane.highlighted_index)
        self.assertIsNone(pane.search)
        self.assertEqual(pane.rendered, _numbered_lines(3))


if __name__ == "__main__":
    unittest.main()
