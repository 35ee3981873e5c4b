from __future__ import annotations

import pytest

from prcheck.config import PrCheckConfig
from prcheck.targets import ChangedFile, FileClassifier, TargetLabel, TargetSet


@pytest.fixture()
def classifier() -> FileClassifier:
    return FileClassifier.from_config(PrCheckConfig())


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("build-system/app.js", TargetLabel.DEV_DASHBOARD),
        ("build-system/app-index/template.js", TargetLabel.DEV_DASHBOARD),
        ("build-system/tasks/lint.js", TargetLabel.BUILD_SYSTEM),
        ("build-system/tasks/schema.textproto", TargetLabel.RUNTIME),
        ("build-system/global-configs/prod-config.json", TargetLabel.FLAG_CONFIG),
        ("build-system/tasks/visual-diff.js", TargetLabel.VISUAL_DIFF),
        ("validator/webui/index.html", TargetLabel.VALIDATOR_WEBUI),
        ("validator/engine/validator.js", TargetLabel.VALIDATOR),
        ("extensions/amp-foo/validator-amp-foo.html", TargetLabel.VALIDATOR),
        ("extensions/amp-foo/0.1/validator-amp-foo.protoascii", TargetLabel.VALIDATOR),
        ("extensions/amp-foo/validator-amp-foo.out", TargetLabel.VALIDATOR),
        ("extensions/validator-amp-foo.html", TargetLabel.RUNTIME),
        ("extensions/amp-foo/validator-amp-foo.js", TargetLabel.RUNTIME),
        ("README.md", TargetLabel.DOCS),
        ("suites/amp-foo.md", TargetLabel.DOCS),
        ("examples/article.md", TargetLabel.RUNTIME),
        ("prod-config.json", TargetLabel.FLAG_CONFIG),
        ("tools/canary-config.json", TargetLabel.FLAG_CONFIG),
        ("test/functional/test-runtime.js", TargetLabel.UNIT_TEST),
        ("extensions/amp-foo/test/test-amp-foo.js", TargetLabel.UNIT_TEST),
        ("test/integration/test-amp-ad.js", TargetLabel.INTEGRATION_TEST),
        ("extensions/amp-foo/test/integration/test-amp-foo.js", TargetLabel.INTEGRATION_TEST),
        ("examples/visual-tests/amp-foo.html", TargetLabel.VISUAL_DIFF),
        ("test/visual-tests", TargetLabel.VISUAL_DIFF),
        ("src/foo.js", TargetLabel.RUNTIME),
        ("test/unit/.eslintrc.js", TargetLabel.RUNTIME),
        ("", TargetLabel.RUNTIME),
    ],
)
def test_classify_maps_paths_to_labels(
    classifier: FileClassifier, path: str, expected: TargetLabel
) -> None:
    assert classifier.classify(path) is expected


def test_classify_is_deterministic(classifier: FileClassifier) -> None:
    paths = ["src/foo.js", "README.md", "build-system/app.js", "validator/webui/x.js"]
    first = [classifier.classify(path) for path in paths]
    second = [classifier.classify(path) for path in reversed(paths)]
    assert first == list(reversed(second))


def test_owners_file_is_build_system_anywhere(classifier: FileClassifier) -> None:
    assert classifier.classify("OWNERS.yaml") is TargetLabel.BUILD_SYSTEM
    assert classifier.classify("extensions/amp-foo/OWNERS.yaml") is TargetLabel.BUILD_SYSTEM
    assert classifier.classify("validator/webui/OWNERS.yaml") is TargetLabel.BUILD_SYSTEM


def test_owners_override_survives_build_system_exclusions(classifier: FileClassifier) -> None:
    # The dev dashboard exclusion does not hide ownership changes.
    assert classifier.classify("build-system/app-index/OWNERS.yaml") is TargetLabel.BUILD_SYSTEM
    assert classifier.classify("examples/visual-tests/OWNERS.yaml") is TargetLabel.BUILD_SYSTEM


def test_build_system_prefix_is_not_segment_aware(classifier: FileClassifier) -> None:
    assert classifier.classify("build-system-legacy/run.js") is TargetLabel.BUILD_SYSTEM


def test_rules_are_ordered_by_precedence(classifier: FileClassifier) -> None:
    assert [rule.label for rule in classifier.rules] == [
        TargetLabel.BUILD_SYSTEM,
        TargetLabel.VALIDATOR_WEBUI,
        TargetLabel.VALIDATOR,
        TargetLabel.DOCS,
        TargetLabel.FLAG_CONFIG,
        TargetLabel.UNIT_TEST,
        TargetLabel.DEV_DASHBOARD,
        TargetLabel.INTEGRATION_TEST,
        TargetLabel.VISUAL_DIFF,
    ]


def test_earlier_rule_wins_over_later_match() -> None:
    classifier = FileClassifier(unit_test_globs=["docs/**/*.md"], integration_test_globs=["test/**"])
    # Matches both the DOCS rule and the unit test glob.
    assert classifier.classify("docs/testing.md") is TargetLabel.DOCS
    # Matches the unit test glob before the dashboard and integration rules.
    assert FileClassifier(unit_test_globs=["build-system/app-index/**"]).classify(
        "build-system/app-index/list.js"
    ) is TargetLabel.UNIT_TEST


def test_test_globs_are_configurable() -> None:
    classifier = FileClassifier(unit_test_globs=["suites/**/*.suite.js"])
    assert classifier.classify("suites/runtime.suite.js") is TargetLabel.UNIT_TEST
    assert classifier.classify("test/functional/test-runtime.js") is TargetLabel.RUNTIME


def test_changed_file_attributes() -> None:
    changed = ChangedFile.of("extensions\\amp-foo\\0.1\\amp-foo.js")
    assert changed.path == "extensions/amp-foo/0.1/amp-foo.js"
    assert changed.extension == ".js"
    assert changed.basename == "amp-foo.js"
    assert changed.segments == ("extensions", "amp-foo", "0.1")


def test_aggregate_empty_list_fails_open(classifier: FileClassifier) -> None:
    targets = classifier.aggregate([])
    assert targets == TargetSet.full()
    assert len(targets) == 10


def test_aggregate_deduplicates_labels(classifier: FileClassifier) -> None:
    targets = classifier.aggregate(["src/a.js", "src/b.js", "README.md", "docs/x.md"])
    assert targets == TargetSet.of(TargetLabel.RUNTIME, TargetLabel.DOCS)


def test_aggregate_ignores_input_order(classifier: FileClassifier) -> None:
    files = ["validator/webui/index.html", "src/foo.js", "build-system/app.js"]
    assert classifier.aggregate(files) == classifier.aggregate(list(reversed(files)))


@pytest.mark.parametrize(
    ("files", "expected"),
    [
        (["build-system/app.js"], {TargetLabel.DEV_DASHBOARD}),
        (["validator/webui/index.html"], {TargetLabel.VALIDATOR_WEBUI}),
        (["extensions/amp-foo/validator-amp-foo.html"], {TargetLabel.VALIDATOR}),
        (["prod-config.json", "src/foo.js"], {TargetLabel.FLAG_CONFIG, TargetLabel.RUNTIME}),
        (["README.md"], {TargetLabel.DOCS}),
    ],
)
def test_aggregate_scenarios(
    classifier: FileClassifier, files: list[str], expected: set[TargetLabel]
) -> None:
    assert classifier.aggregate(files).labels == frozenset(expected)


def test_target_set_describe_is_sorted() -> None:
    targets = TargetSet.of(TargetLabel.RUNTIME, TargetLabel.DOCS, TargetLabel.BUILD_SYSTEM)
    assert targets.describe() == "BUILD_SYSTEM, DOCS, RUNTIME"
    assert list(targets) == [TargetLabel.BUILD_SYSTEM, TargetLabel.DOCS, TargetLabel.RUNTIME]
    assert targets.has_any(TargetLabel.DOCS, TargetLabel.VALIDATOR)
    assert not targets.has_any(TargetLabel.VALIDATOR)


def test_classify_all_preserves_input_order(classifier: FileClassifier) -> None:
    mapping = classifier.classify_all(["src/foo.js", "README.md"])
    assert list(mapping.items()) == [
        ("src/foo.js", TargetLabel.RUNTIME),
        ("README.md", TargetLabel.DOCS),
    ]
