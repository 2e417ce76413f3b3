"""Regression tests for raw-key decoding.

Covers ESC timing, navigation sequences, and SGR mouse tokens.
"""

import os
import time
import unittest

from wikipane import input as input_mod


class ReadKeyRegressionTests(unittest.TestCase):
    def setUp(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def tearDown(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def _read_all(self, payload: bytes, count: int = 1) -> list[str]:
        read_fd, write_fd = os.pipe()
        try:
            os.write(write_fd, payload)
            return [input_mod.read_key(read_fd, timeout_ms=20) for _ in range(count)]
        finally:
            os.close(read_fd)
            os.close(write_fd)

    def test_single_escape_returns_esc_without_second_keypress(self) -> None:
        started = time.monotonic()
        keys = self._read_all(b"\x1b")
        elapsed = time.monotonic() - started

        self.assertEqual(keys, ["ESC"])
        self.assertLess(elapsed, 0.2)

    def test_escape_does_not_swallow_following_printable_key(self) -> None:
        self.assertEqual(self._read_all(b"\x1bx", count=2), ["ESC", "x"])

    def test_timeout_without_input_returns_empty_token(self) -> None:
        self.assertEqual(self._read_all(b""), [""])

    def test_control_bytes_map_to_named_tokens(self) -> None:
        cases = {
            b"\t": "TAB",
            b"\x7f": "BACKSPACE",
            b"\x08": "BACKSPACE",
            b"\x03": "CTRL_C",
            b"\r": "ENTER_CR",
            b"\n": "ENTER_LF",
        }
        for payload, expected in cases.items():
            with self.subTest(payload=payload):
                self.assertEqual(self._read_all(payload), [expected])

    def test_navigation_sequences(self) -> None:
        cases = {
            b"\x1b[A": "UP",
            b"\x1b[B": "DOWN",
            b"\x1b[C": "RIGHT",
            b"\x1b[D": "LEFT",
            b"\x1bOA": "UP",
            b"\x1b[H": "HOME",
            b"\x1b[4~": "END",
            b"\x1b[5~": "PAGE_UP",
            b"\x1b[6~": "PAGE_DOWN",
            b"\x1b[1;5C": "RIGHT",
        }
        for payload, expected in cases.items():
            with self.subTest(payload=payload):
                self.assertEqual(self._read_all(payload), [expected])

    def test_multibyte_character_is_one_token(self) -> None:
        self.assertEqual(self._read_all("é".encode("utf-8")), ["é"])

    def test_sgr_mouse_left_button_press_and_release(self) -> None:
        keys = self._read_all(b"\x1b[<0;12;4M\x1b[<0;12;4m", count=2)

        self.assertEqual(keys, ["MOUSE_LEFT_DOWN:12:4", "MOUSE_LEFT_UP:12:4"])

    def test_sgr_mouse_wheel(self) -> None:
        keys = self._read_all(b"\x1b[<64;5;6M\x1b[<65;5;6M", count=2)

        self.assertEqual(keys, ["MOUSE_WHEEL_UP:5:6", "MOUSE_WHEEL_DOWN:5:6"])

    def test_other_mouse_reports_are_generic(self) -> None:
        keys = self._read_all(b"\x1b[<32;1;1M\x1b[<2;1;1M", count=2)

        self.assertEqual(keys, ["MOUSE", "MOUSE"])


if __name__ == "__main__":
    unittest.main()
