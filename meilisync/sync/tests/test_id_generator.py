"""
Tests for document id generation and normalization.
"""

import re

import pytest

from ..id_generator import IdStrategy, MAX_ID_LENGTH, generate_id, normalize
from ..source import SourceItem

NORMALIZED = re.compile(r'^[a-z0-9_-]{0,100}$')

SAMPLES = [
    "Hello World!",
    "/2024/01/05/hello-world",
    "/blog/My Post/",
    "C:\\Users\\site\\_posts\\draft.md",
    "Café Été -- ünïcödé",
    "---leading and trailing---",
    "under_score_and-dash",
    "a" * 250,
    "x/" * 80,
    "",
    "!!!",
]


def item(item_id="/posts/hello", url="/posts/hello/", data=None):
    return SourceItem(id=item_id, url=url, content="body", data=data if data is not None else {"title": "Hello"})


class TestNormalize:

    def test_trailing_punctuation_collapses_to_dash(self):
        assert normalize("Hello World!") == "hello-world-"

    def test_path_separators_become_dashes(self):
        assert normalize("/2024/01/05/hello") == "-2024-01-05-hello"
        assert normalize("drafts\\note") == "drafts-note"

    def test_dash_runs_collapse(self):
        assert normalize("a -- b") == "a-b"

    def test_non_ascii_characters_are_replaced(self):
        assert normalize("Café Été") == "caf-t-"

    def test_truncates_to_max_length(self):
        assert len(normalize("a" * 250)) == MAX_ID_LENGTH

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        assert normalize(value) == ""

    @pytest.mark.parametrize("value", SAMPLES)
    def test_idempotent(self, value):
        once = normalize(value)
        assert normalize(once) == once

    @pytest.mark.parametrize("value", SAMPLES)
    def test_output_alphabet(self, value):
        assert NORMALIZED.match(normalize(value))


class TestGenerateId:

    def test_by_id(self):
        assert generate_id(item(item_id="/2024/01/05/Hello"), "posts", IdStrategy.BY_ID) == "-2024-01-05-hello"

    def test_by_url(self):
        assert generate_id(item(url="/blog/My Post/"), "posts", IdStrategy.BY_URL) == "-blog-my-post-"

    def test_by_number_uses_collection_and_number(self):
        source_item = item(data={"title": "Issue", "number": 42})
        assert generate_id(source_item, "issues", IdStrategy.BY_NUMBER) == "issues-42"

    def test_by_number_accepts_digit_strings(self):
        source_item = item(data={"number": "7"})
        assert generate_id(source_item, "issues", IdStrategy.BY_NUMBER) == "issues-7"

    @pytest.mark.parametrize("number", [None, "seven", True])
    def test_by_number_falls_back_to_id(self, number):
        source_item = item(item_id="/issues/First One", data={"number": number})
        assert generate_id(source_item, "issues", IdStrategy.BY_NUMBER) == "-issues-first-one"

    def test_by_number_result_is_normalized(self):
        source_item = item(data={"number": 3})
        assert generate_id(source_item, "Release Notes", IdStrategy.BY_NUMBER) == "release-notes-3"

    def test_default_strategy_is_by_id(self):
        assert generate_id(item(item_id="/posts/A"), "posts") == "-posts-a"
