# tests/test_stream_reader.py
import json
import unittest

from orcamento.core.stream_reader import collect_text, iter_deltas, iter_events


def sse(content):
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}, ensure_ascii=False) + "\n"


class TestStreamReader(unittest.TestCase):

    def test_concatenates_deltas_in_order(self):
        chunks = [sse("Olá").encode(), sse(", ").encode(), sse("mundo").encode(), b"data: [DONE]\n"]
        self.assertEqual(collect_text(chunks), "Olá, mundo")

    def test_stops_at_done_sentinel(self):
        chunks = [sse("antes"), "data: [DONE]\n", sse("depois")]
        self.assertEqual(list(iter_deltas(chunks)), ["antes"])

    def test_skips_invalid_json(self):
        chunks = [sse("a"), "data: {nao é json\n", sse("b"), "data: [DONE]\n"]
        self.assertEqual(collect_text(chunks), "ab")

    def test_ignores_lines_without_data_prefix(self):
        chunks = [": keep-alive\n", "event: message\n", sse("ok"), "\n"]
        self.assertEqual(collect_text(chunks), "ok")

    def test_line_split_across_chunks(self):
        line = sse("economize").encode()
        chunks = [line[:10], line[10:25], line[25:], b"data: [DONE]\n"]
        self.assertEqual(collect_text(chunks), "economize")

    def test_multibyte_character_split_across_chunks(self):
        line = sse("ção").encode()
        cut = line.index("ç".encode()) + 1  # no meio do caractere
        self.assertEqual(collect_text([line[:cut], line[cut:]]), "ção")

    def test_skips_events_without_content(self):
        role_only = "data: " + json.dumps({"choices": [{"delta": {"role": "assistant"}}]}) + "\n"
        no_choices = "data: " + json.dumps({"choices": []}) + "\n"
        self.assertEqual(collect_text([role_only, no_choices, sse("x")]), "x")

    def test_handles_crlf_and_last_line_without_newline(self):
        chunks = [sse("a").replace("\n", "\r\n"), sse("b").rstrip("\n")]
        self.assertEqual(collect_text(chunks), "ab")

    def test_iter_events_returns_raw_payloads(self):
        events = list(iter_events(["data: 1\n", "data: 2\n", "data: [DONE]\n"]))
        self.assertEqual(events, ["1", "2"])

    def test_restartable_with_fresh_source(self):
        chunks = [sse("x"), "data: [DONE]\n"]
        self.assertEqual(collect_text(chunks), "x")
        self.assertEqual(collect_text(chunks), "x")
