"""
SnipStash Backend — Auto Tagger Tests
=======================================
"""

import pytest

from snipstash.services.auto_tagger import auto_tag, detect_tags, merge_tags


class TestDetectTags:

    @pytest.mark.parametrize(
        "content, expected",
        [
            ("for x in items:\n    print(x)", "loop"),
            ("const res = await fetch('/api/users')", "API"),
            ("try:\n    run()\nexcept KeyError:\n    pass", "error handling"),
            ("console.log(value)", "debugging"),
            ("async def main():\n    await asyncio.sleep(1)", "async"),
            ("document.querySelector('#app')", "DOM"),
            ("SELECT id FROM users WHERE active", "SQL"),
            ("jwt.decode(token, secret)", "auth"),
            ("setTimeout(tick, 1000)", "timing"),
        ],
    )
    def test_rule_matches(self, content, expected):
        assert expected in detect_tags(content)

    def test_description_is_scanned(self):
        assert "SQL" in detect_tags("x = 1", description="runs a JOIN across two tables")

    def test_nothing_to_scan(self):
        assert detect_tags(None) == []
        assert detect_tags("") == []

    def test_plain_text_has_no_tags(self):
        assert detect_tags("hello there") == []


class TestMergeTags:

    def test_manual_first_and_case_insensitive_collisions(self):
        assert merge_tags(["sql", "mine"], ["SQL", "loop"]) == ["sql", "mine", "loop"]

    def test_auto_tag(self):
        tags = auto_tag("while True:\n    pass", ["python"])
        assert tags[0] == "python"
        assert "loop" in tags
