from rubber.services.diff_metrics import compute


def test_counts_added_and_removed_lines():
    patch = "@@ -1,3 +1,4 @@\n context\n-old\n+new\n+another\n context"

    stats = compute(patch)

    assert (stats.added, stats.removed) == (2, 1)
    assert stats.total == 3


def test_ignores_file_header_lines():
    patch = (
        "--- a/src/lib.rs\n"
        "+++ b/src/lib.rs\n"
        "@@ -1 +1 @@\n"
        "-fn old() {}\n"
        "+fn new() {}"
    )

    stats = compute(patch)

    assert (stats.added, stats.removed) == (1, 1)


def test_empty_patch_has_no_changes():
    stats = compute("")

    assert stats.added == 0
    assert stats.removed == 0
    assert stats.total == 0
