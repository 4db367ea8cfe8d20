import pytest

from viewbot.files import ProjectFiles, edit_file, java_parses
from viewbot.results import EditResult, MalformedInputError, NotFoundError, Outcome, ValidationError

from conftest import read, write

JAVA = "package a;\r\n\r\npublic class A {\r\n    int x;\r\n}\r\n"


def append_field(text):
    out = text.replace("    int x;", "    int x;\r\n    int y;")
    return out, [("field", EditResult(Outcome.APPLIED, out))]


def test_edit_keeps_crlf(tmp_path):
    write(tmp_path, "A.java", JAVA)
    res = edit_file(ProjectFiles(tmp_path), "A.java", append_field)
    assert res.changed and res.error is None
    assert read(tmp_path, "A.java") == "package a;\r\n\r\npublic class A {\r\n    int x;\r\n    int y;\r\n}\r\n"


def test_failing_transform_keeps_original(tmp_path):
    write(tmp_path, "A.java", JAVA)

    def boom(text):
        raise NotFoundError("no anchor")

    res = edit_file(ProjectFiles(tmp_path), "A.java", boom)
    assert not res.changed
    assert isinstance(res.error, NotFoundError)
    assert read(tmp_path, "A.java") == JAVA


def test_java_that_stops_parsing_is_reverted(tmp_path):
    write(tmp_path, "A.java", JAVA)

    def breaks(text):
        out = text.replace("}", "", 1)
        return out, [("break", EditResult(Outcome.APPLIED, out))]

    res = edit_file(ProjectFiles(tmp_path), "A.java", breaks)
    assert res.reverted
    assert isinstance(res.error, MalformedInputError)
    assert read(tmp_path, "A.java") == JAVA


def test_unparseable_original_is_still_edited(tmp_path):
    src = "this is not java {\n    int x;\n"
    write(tmp_path, "B.java", src)
    assert not java_parses(src)
    res = edit_file(ProjectFiles(tmp_path), "B.java", lambda t: (t + "// touched\n", []))
    assert res.changed


def test_dry_run_keeps_changes_in_memory(tmp_path):
    write(tmp_path, "a.txt", "one")
    files = ProjectFiles(tmp_path, dry_run=True)
    files.write("a.txt", "two")
    files.write("dir/new.txt", "new")
    files.delete("a.txt")
    assert read(tmp_path, "a.txt") == "one"
    assert not (tmp_path / "dir").exists()
    assert files.read("dir/new.txt") == "new"
    assert not files.exists("a.txt")
    assert files.list_dir("dir") == ["new.txt"]
    assert "dir/new.txt" in files.written


def test_write_and_delete(tmp_path):
    files = ProjectFiles(tmp_path)
    files.write("x/y.txt", "data\r\n")
    assert read(tmp_path, "x/y.txt") == "data\r\n"
    assert files.list_dir("x") == ["y.txt"]
    files.delete("x/y.txt")
    assert not (tmp_path / "x" / "y.txt").exists()
    with pytest.raises(FileNotFoundError):
        files.delete("x/y.txt")


def test_paths_outside_root_are_refused(tmp_path):
    files = ProjectFiles(tmp_path / "root")
    with pytest.raises(ValidationError):
        files.path("../escape.txt")


def test_invalid_utf8_is_reported_as_malformed(tmp_path):
    (tmp_path / "A.java").write_bytes(b"package a;\n// caf\xe9\npublic class A {}\n")
    files = ProjectFiles(tmp_path)
    with pytest.raises(MalformedInputError, match="not valid UTF-8: A.java"):
        files.read("A.java")
    with pytest.raises(MalformedInputError):
        edit_file(files, "A.java", append_field)
    assert (tmp_path / "A.java").read_bytes() == b"package a;\n// caf\xe9\npublic class A {}\n"
