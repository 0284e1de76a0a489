import pytest

from s3_sluice.errors import PathRewriteError
from s3_sluice.naming import base_name, name_file, regex_renamer


# ---------------------------------------------------------------------------
# Plain filename replacement
# ---------------------------------------------------------------------------


def test_replaces_filename_keeping_directories():
    assert name_file("in/sub/a.txt", "b.txt") == "in/sub/b.txt"


def test_key_without_directory():
    assert name_file("a.txt", "b.txt") == "b.txt"


def test_same_name_is_identity():
    assert name_file("x/y/z.gz", "z.gz") == "x/y/z.gz"


# ---------------------------------------------------------------------------
# remove_path / add_path
# ---------------------------------------------------------------------------


def test_remove_path_only():
    assert name_file("in/sub/a.txt", "a.txt", remove_path="in/") == "sub/a.txt"


def test_add_path_only():
    assert name_file("in/a.txt", "a.txt", add_path="out/") == "out/in/a.txt"


def test_remove_and_add():
    assert name_file("in/a.txt", "a.txt", "in/", "out/") == "out/a.txt"


def test_remove_and_add_keeps_sub_folders():
    assert name_file("in/sub/deep/c.txt", "c.txt", "in/", "out/") == "out/sub/deep/c.txt"


def test_remove_and_add_with_rename():
    assert name_file("in/sub/c.txt", "c-2024.txt", "in/", "out/") == "out/sub/c-2024.txt"


def test_empty_remove_path_strips_nothing():
    assert name_file("in/a.txt", "a.txt", "", "out/") == "out/in/a.txt"


def test_empty_add_path():
    assert name_file("in/a.txt", "a.txt", "in/", "") == "a.txt"


def test_local_directory_as_add_path():
    assert name_file("in/sub/a.txt", "a.txt", "in/", "/tmp/out/") == "/tmp/out/sub/a.txt"


def test_remove_path_not_a_prefix_raises():
    with pytest.raises(PathRewriteError, match="does not start with"):
        name_file("other/a.txt", "a.txt", "in/", "out/")


def test_remove_path_checked_against_renamed_path():
    # the prefix reaches into the filename, which has been replaced
    with pytest.raises(PathRewriteError):
        name_file("in/abc.txt", "zzz.txt", "in/abc", None)


def test_path_rewrite_error_is_not_value_error():
    with pytest.raises(PathRewriteError) as exc:
        name_file("x/a", "a", "y/")
    assert not isinstance(exc.value, ValueError)


# ---------------------------------------------------------------------------
# flatten
# ---------------------------------------------------------------------------


def test_flatten_drops_directories():
    assert name_file("in/sub/deep/c.txt", "c.txt", flatten=True) == "c.txt"


def test_flatten_with_add_path():
    assert name_file("in/sub/c.txt", "c.txt", "in/", "flat/", True) == "flat/c.txt"


def test_flatten_ignores_remove_path_mismatch():
    assert name_file("elsewhere/c.txt", "c.txt", "in/", "flat/", True) == "flat/c.txt"


@pytest.mark.parametrize(
    "key", ["a.txt", "in/a.txt", "in/sub/a.txt", "in/a/b/c/d/a.txt"]
)
@pytest.mark.parametrize("add", [None, "", "out/", "x/y/z/"])
def test_flatten_only_add_path_separators(key, add):
    result = name_file(key, "a.txt", "in/", add, True)
    assert result.count("/") == (add or "").count("/")
    assert result.endswith("a.txt")


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "key, expected",
    [("a.txt", "a.txt"), ("in/a.txt", "a.txt"), ("in/sub/", None), ("", None)],
)
def test_base_name(key, expected):
    assert base_name(key) == expected


def test_regex_renamer():
    rename = regex_renamer(r"\.log$", ".txt")
    assert rename("app.log") == "app.txt"
    assert rename("app.log.gz") == "app.log.gz"


def test_regex_renamer_groups():
    rename = regex_renamer(r"^(\d{4})-(\d{2})", r"\1/\2")
    assert rename("2024-05-events.csv") == "2024/05-events.csv"
