from pathlib import Path

import pytest

from code_to_pdf.context import RunContext
from code_to_pdf.ignore import IgnoreResolver, as_match_path, is_ignored, last_match, load_ignore_spec


def _touch(path: Path, content: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.unit
@pytest.mark.parametrize(
    "rel",
    [
        "node_modules/lib/index.js",
        "pkg/__pycache__/mod.cpython-313.pyc",
        ".git/config",
        "yarn.lock",
        "sub/package-lock.json",
        ".DS_Store",
    ],
)
def test_default_rules_ignore_regardless_of_gitignore(tmp_path: Path, rel: str) -> None:
    target = _touch(tmp_path / rel)
    _touch(tmp_path / ".gitignore", "!node_modules\n!yarn.lock\n!*.pyc\n")

    assert is_ignored(target, tmp_path)


@pytest.mark.unit
def test_gitignore_file_itself_is_ignored(tmp_path: Path) -> None:
    gitignore = _touch(tmp_path / ".gitignore", "*.log\n")

    assert is_ignored(gitignore, tmp_path)


@pytest.mark.unit
def test_root_gitignore_applies_to_nested_files(tmp_path: Path) -> None:
    _touch(tmp_path / ".gitignore", "*.log\nsecret/\n")
    log = _touch(tmp_path / "a" / "b" / "run.log")
    secret_dir = tmp_path / "a" / "secret"
    _touch(secret_dir / "key.txt")
    kept = _touch(tmp_path / "a" / "b" / "main.py")

    resolver = IgnoreResolver(tmp_path)

    assert resolver.is_ignored(log)
    assert resolver.is_ignored(secret_dir)
    assert not resolver.is_ignored(kept)


@pytest.mark.unit
def test_nested_negation_reincludes_file(tmp_path: Path) -> None:
    _touch(tmp_path / ".gitignore", "*.log\n")
    _touch(tmp_path / "logs" / ".gitignore", "!keep.log\n")
    keep = _touch(tmp_path / "logs" / "keep.log")
    drop = _touch(tmp_path / "logs" / "drop.log")

    resolver = IgnoreResolver(tmp_path)

    assert not resolver.is_ignored(keep)
    assert resolver.is_ignored(drop)


@pytest.mark.unit
def test_nearer_gitignore_can_exclude_again(tmp_path: Path) -> None:
    _touch(tmp_path / ".gitignore", "*.txt\n!notes.txt\n")
    _touch(tmp_path / "deep" / ".gitignore", "notes.txt\n")
    top = _touch(tmp_path / "notes.txt")
    deep = _touch(tmp_path / "deep" / "notes.txt")

    resolver = IgnoreResolver(tmp_path)

    assert not resolver.is_ignored(top)
    assert resolver.is_ignored(deep)


@pytest.mark.unit
def test_gitignore_rules_are_relative_to_their_directory(tmp_path: Path) -> None:
    _touch(tmp_path / "pkg" / ".gitignore", "/generated.py\n")
    local = _touch(tmp_path / "pkg" / "generated.py")
    elsewhere = _touch(tmp_path / "generated.py")

    resolver = IgnoreResolver(tmp_path)

    assert resolver.is_ignored(local)
    assert not resolver.is_ignored(elsewhere)


@pytest.mark.unit
def test_root_and_outside_paths_are_never_ignored(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    outside = _touch(tmp_path / "other.py")

    resolver = IgnoreResolver(root)

    assert not resolver.is_ignored(root)
    assert not resolver.is_ignored(outside)


@pytest.mark.unit
def test_specs_are_cached_in_the_run_context(tmp_path: Path) -> None:
    gitignore = _touch(tmp_path / ".gitignore", "*.tmp\n")
    first = _touch(tmp_path / "a.tmp")
    context = RunContext()
    resolver = IgnoreResolver(tmp_path, context)

    assert resolver.is_ignored(first)
    gitignore.write_text("", encoding="utf-8")

    assert resolver.is_ignored(first)
    assert str(tmp_path.absolute()) in context.ignore_specs
    assert not IgnoreResolver(tmp_path, RunContext()).is_ignored(first)


@pytest.mark.unit
def test_as_match_path_marks_directories(tmp_path: Path) -> None:
    (tmp_path / "build").mkdir()
    _touch(tmp_path / "build.py")

    assert as_match_path(tmp_path / "build", tmp_path) == "build/"
    assert as_match_path(tmp_path / "build.py", tmp_path) == "build.py"


@pytest.mark.unit
def test_last_match_reports_verdict_of_last_pattern(tmp_path: Path) -> None:
    _touch(tmp_path / ".gitignore", "*.py\n!main.py\n")
    spec = load_ignore_spec(tmp_path)

    assert last_match(spec, "util.py") is True
    assert last_match(spec, "main.py") is False
    assert last_match(spec, "README") is None


@pytest.mark.unit
def test_load_ignore_spec_without_file_is_empty(tmp_path: Path) -> None:
    spec = load_ignore_spec(tmp_path)

    assert last_match(spec, "anything.py") is None
