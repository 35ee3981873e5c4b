from __future__ import annotations

import pytest

from prcheck.tools.globs import match_path, matches_any


@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("test/unit/test-a.js", "test/unit/*.js", True),
        ("test/unit/deep/test-a.js", "test/unit/*.js", False),
        ("test/functional/test-a.js", "test/functional/**/*.js", True),
        ("test/functional/a/b/test-a.js", "test/functional/**/*.js", True),
        ("ads/google/test/test-doubleclick.js", "ads/**/test/test-*.js", True),
        ("ads/google/test/helper.js", "ads/**/test/test-*.js", False),
        ("extensions/amp-a/0.1/test/test-a.js", "extensions/**/test/*.js", True),
        ("extensions/amp-a/test/integration/test-a.js", "extensions/**/test/*.js", False),
        ("src/a.js", "**", True),
        ("src/a.json", "src/*.js", False),
        ("src/a.js", "src/?.js", True),
        ("./src/a.js", "src/*.js", True),
        ("src\\a.js", "src/*.js", True),
        ("Src/a.js", "src/*.js", False),
        ("test/unit/.eslintrc.js", "test/unit/*.js", False),
        ("test/unit/.eslintrc.js", "test/unit/.*.js", True),
        ("test/unit/.eslintrc.js", "test/unit/?eslintrc.js", False),
        ("test/functional/.cache/test-a.js", "test/functional/**/*.js", False),
        ("test/functional/.cache/test-a.js", "test/functional/.cache/*.js", True),
        ("src/.hidden", "**", False),
        ("src/.eslintrc", "**/.eslintrc", True),
    ],
)
def test_match_path(path: str, pattern: str, expected: bool) -> None:
    assert match_path(path, pattern) is expected


def test_matches_any() -> None:
    patterns = ["test/unit/*.js", "test/integration/**/*.js"]
    assert matches_any("test/integration/a/test-a.js", patterns)
    assert not matches_any("src/a.js", patterns)
    assert not matches_any("src/a.js", [])
