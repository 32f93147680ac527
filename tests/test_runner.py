# git-copyright - keep copyright notices in sync with git history
# Copyright (C) 2026 git-copyright Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from git_copyright.config import Settings
from git_copyright.detector import NoticeMatcher
from git_copyright.errors import ConfigurationError, RepositoryError, TemplateError
from git_copyright.history import GitCommandError, HistoryTimeoutError
from git_copyright.models import CommitRecord, FileStatus, TrackedFile
from git_copyright.renderer import Template
from git_copyright.runner import RunContext, Runner, check_repo_copyright, process_file
from git_copyright.styles import DEFAULT_REGISTRY

TEMPLATE = "Copyright {years} Acme"
THIS_YEAR = 2026


def make_settings(repo, **overrides):
    values = dict(
        repo_path=str(repo.root),
        copyright_template=TEMPLATE,
        config_path=None,
        exclude=[],
        workers=2,
        dry_run=False,
        bump_dirty_year=True,
        multiple_notices="first",
    )
    values.update(overrides)
    return Settings(**values)


def run(repo, **overrides):
    summary = check_repo_copyright(make_settings(repo, **overrides), today=THIS_YEAR)
    return {result.path: result for result in summary.results}, summary


class FakeRepo:
    """Stands in for GitRepository in pipeline tests that do not need real history."""

    def __init__(self, root, history=None, error=None, head=None):
        self.root = root
        self.history = history or {}
        self.error = error
        self.head = head or {}
        self.on_history = None

    def file_history(self, path, timeout=None):
        if self.on_history is not None:
            self.on_history(path)
        if self.error is not None:
            raise self.error
        return [
            CommitRecord(timestamp=datetime(year, 6, 1, tzinfo=timezone.utc), path=path)
            for year in self.history.get(path, [])
        ]

    def head_contents(self, path, timeout=None):
        return self.head.get(path)


def make_ctx(repo, template=TEMPLATE, **overrides):
    parsed = Template.parse(template)
    return RunContext(
        repo=repo,
        registry=DEFAULT_REGISTRY,
        template=parsed,
        matcher=NoticeMatcher.for_template(parsed),
        current_year=THIS_YEAR,
        **overrides,
    )


def tracked(root, name, content=None):
    path = root / name
    if content is not None:
        path.write_text(content)
    return TrackedFile(path=name, absolute_path=path)


def test_scenario_new_notice_from_history(git_repo):
    git_repo.commit(2019, {"tool.py": "import os\n"})
    git_repo.commit(2022, {"tool.py": "import os\nprint(os.sep)\n"})

    results, summary = run(git_repo)

    assert results["tool.py"].status == FileStatus.UPDATED
    assert git_repo.read("tool.py") == "# Copyright 2019-2022 Acme\n\nimport os\nprint(os.sep)\n"
    assert summary.changed == ["tool.py"]


def test_scenario_existing_notice_is_replaced_after_new_commit(git_repo):
    git_repo.commit(2019, {"tool.py": "import os\n"})
    git_repo.commit(2022, {"tool.py": "import os\nprint(os.sep)\n"})
    run(git_repo)
    git_repo.commit(2023, {"tool.py": git_repo.read("tool.py") + "print(1)\n"})

    results, _ = run(git_repo)

    assert results["tool.py"].status == FileStatus.UPDATED
    assert results["tool.py"].previous_years.end_year == 2022
    text = git_repo.read("tool.py")
    assert text == "# Copyright 2019-2023 Acme\n\nimport os\nprint(os.sep)\nprint(1)\n"
    assert text.count("Copyright") == 1


def test_scenario_single_year_has_no_range(git_repo):
    git_repo.commit(2021, {"single.py": "x = 1\n"})

    run(git_repo)

    assert git_repo.read("single.py") == "# Copyright 2021 Acme\n\nx = 1\n"


def test_scenario_binary_and_unknown_files_are_skipped(git_repo):
    png = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
    git_repo.commit(2020, {"logo.png": png, "data.xyz": "some data\n"})

    results, summary = run(git_repo)

    assert results["logo.png"].status == FileStatus.SKIPPED
    assert results["data.xyz"].status == FileStatus.SKIPPED
    assert (git_repo.root / "logo.png").read_bytes() == png
    assert git_repo.read("data.xyz") == "some data\n"
    assert summary.failed == []


def test_second_run_is_a_no_op(git_repo):
    git_repo.commit(2019, {"a.py": "import os\n", "b.rs": "fn main() {}\n", "c.c": "int x;\n"})
    git_repo.commit(2020, {"b.rs": "fn main() { }\n"})
    run(git_repo)
    before = {name: git_repo.read(name) for name in ("a.py", "b.rs", "c.c")}

    results, summary = run(git_repo)

    assert all(r.status == FileStatus.UNCHANGED for r in results.values())
    assert summary.changed == []
    assert {name: git_repo.read(name) for name in before} == before
    assert before["b.rs"] == "// Copyright 2019-2020 Acme\n\nfn main() { }\n"
    assert before["c.c"] == "/* Copyright 2019 Acme */\n\nint x;\n"


def test_notice_goes_after_shebang(git_repo):
    git_repo.commit(2020, {"bin/run": "#!/usr/bin/env bash\necho hi\n"})

    run(git_repo)

    assert git_repo.read("bin/run") == "#!/usr/bin/env bash\n# Copyright 2020 Acme\n\necho hi\n"


def test_only_notice_span_changes(git_repo):
    original = "#!/usr/bin/env python\n# Copyright 2015 Acme\n# Licensed under the MIT license.\n\ndef main():\n    pass\n"
    git_repo.commit(2020, {"app.py": original})

    results, _ = run(git_repo)

    assert results["app.py"].previous_years.start_year == 2015
    assert git_repo.read("app.py") == original.replace("Copyright 2015 Acme", "Copyright 2020 Acme")


def test_dirty_file_is_extended_to_current_year(git_repo):
    git_repo.commit(2019, {"a.py": "x = 1\n"})
    git_repo.write("a.py", "x = 2\n")

    run(git_repo)

    assert git_repo.read("a.py") == f"# Copyright 2019-{THIS_YEAR} Acme\n\nx = 2\n"


def test_dirty_bump_can_be_disabled(git_repo):
    git_repo.commit(2019, {"a.py": "x = 1\n"})
    git_repo.write("a.py", "x = 2\n")

    run(git_repo, bump_dirty_year=False)

    assert git_repo.read("a.py") == "# Copyright 2019 Acme\n\nx = 2\n"


def test_notice_only_edits_do_not_count_as_dirty(git_repo):
    git_repo.commit(2019, {"a.py": "# Copyright 2018 Acme\n\nx = 1\n"})
    git_repo.write("a.py", "# Copyright 2017 Acme\n\n\nx = 1\n")

    run(git_repo)

    assert git_repo.read("a.py") == "# Copyright 2019 Acme\n\n\nx = 1\n"


def test_dry_run_reports_without_writing(git_repo):
    git_repo.commit(2020, {"a.py": "x = 1\n"})

    results, summary = run(git_repo, dry_run=True)

    result = results["a.py"]
    assert result.status == FileStatus.WOULD_UPDATE
    assert "+# Copyright 2020 Acme" in result.diff
    assert result.diff.startswith("--- a/a.py\n+++ b/a.py\n")
    assert git_repo.read("a.py") == "x = 1\n"
    assert summary.changed == ["a.py"]


def test_excluded_and_ignored_paths_are_not_processed(git_repo):
    git_repo.commit(2020, {"a.py": "x = 1\n", "gen/b.py": "y = 1\n", "LICENSE": "MIT\n", "c_pb2.py": "z = 1\n"})

    results, _ = run(git_repo, exclude=["gen/**", "*_pb2.py"])

    assert set(results) == {"a.py"}
    assert git_repo.read("gen/b.py") == "y = 1\n"


def test_paths_limit_the_run(git_repo):
    git_repo.commit(2020, {"src/a.py": "x = 1\n", "tools/b.py": "y = 1\n"})

    results, _ = run(git_repo, paths=[str(git_repo.root / "src")])

    assert set(results) == {"src/a.py"}


def test_config_file_template_and_comment_signs(git_repo, tmp_path):
    config = tmp_path / "copyright.toml"
    config.write_text(
        'copyright_template = "(c) {years} Example Ltd"\n'
        'ignore_dirs = ["docs"]\n'
        "[comment_sign_map]\n"
        'xyz = "//"\n'
        'tmpl = ["{{!", "}}"]\n'
    )
    git_repo.commit(2021, {"data.xyz": "value\n", "page.tmpl": "<p/>\n", "docs/a.py": "x = 1\n"})

    results, _ = run(git_repo, copyright_template=None, config_path=str(config))

    assert git_repo.read("data.xyz") == "// (c) 2021 Example Ltd\n\nvalue\n"
    assert git_repo.read("page.tmpl") == "{{! (c) 2021 Example Ltd }}\n\n<p/>\n"
    assert "docs/a.py" not in results


def test_ambiguous_notices_skipped_with_skip_policy(git_repo):
    text = "# Copyright 2011 Alpha Corp\n# Copyright 2012 Beta Corp\nx = 1\n"
    git_repo.commit(2020, {"a.py": text})

    results, _ = run(git_repo, multiple_notices="skip")

    assert results["a.py"].status == FileStatus.SKIPPED
    assert git_repo.read("a.py") == text


def test_not_a_repository_is_fatal(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    with patch("git_copyright.history.subprocess.run") as mocked:
        mocked.return_value.returncode = 128
        mocked.return_value.stderr = b"fatal: not a git repository"
        with pytest.raises(RepositoryError):
            check_repo_copyright(Settings(repo_path=str(plain)))


def test_bad_template_is_fatal_before_any_change(git_repo):
    git_repo.commit(2020, {"a.py": "x = 1\n"})

    with pytest.raises(TemplateError):
        run(git_repo, copyright_template="Copyright {years} {owner}")
    assert git_repo.read("a.py") == "x = 1\n"


def test_invalid_settings_are_fatal(git_repo):
    with pytest.raises(ConfigurationError, match="multiple_notices"):
        run(git_repo, multiple_notices="largest")


def test_process_file_skips_file_without_history(tmp_path):
    ctx = make_ctx(FakeRepo(tmp_path))
    result = process_file(tracked(tmp_path, "new.py", "x = 1\n"), ctx)

    assert result.status == FileStatus.SKIPPED
    assert result.reason == "no committed history"


def test_process_file_history_timeout_is_skipped(tmp_path):
    ctx = make_ctx(FakeRepo(tmp_path, error=HistoryTimeoutError("history query timed out after 30s")))
    result = process_file(tracked(tmp_path, "a.py", "x = 1\n"), ctx)

    assert result.status == FileStatus.SKIPPED
    assert "timed out" in result.reason


def test_process_file_git_error_is_failed(tmp_path):
    ctx = make_ctx(FakeRepo(tmp_path, error=GitCommandError(["log"], 128, "fatal: bad revision")))
    result = process_file(tracked(tmp_path, "a.py", "x = 1\n"), ctx)

    assert result.status == FileStatus.FAILED
    assert "bad revision" in result.reason


def test_process_file_unreadable_file_is_failed(tmp_path):
    ctx = make_ctx(FakeRepo(tmp_path, history={"gone.py": [2020]}))
    result = process_file(tracked(tmp_path, "gone.py"), ctx)

    assert result.status == FileStatus.FAILED
    assert result.reason.startswith("cannot read file")


def test_process_file_non_utf8_is_skipped(tmp_path):
    (tmp_path / "latin.py").write_bytes("# caf\xe9\n".encode("latin-1"))
    ctx = make_ctx(FakeRepo(tmp_path, history={"latin.py": [2020]}))
    result = process_file(tracked(tmp_path, "latin.py"), ctx)

    assert result.status == FileStatus.SKIPPED
    assert (tmp_path / "latin.py").read_bytes() == "# caf\xe9\n".encode("latin-1")


def test_process_file_write_failure_is_failed(tmp_path):
    ctx = make_ctx(FakeRepo(tmp_path, history={"a.py": [2020]}))
    with patch("git_copyright.runner.update_file", side_effect=PermissionError("denied")):
        result = process_file(tracked(tmp_path, "a.py", "x = 1\n"), ctx)

    assert result.status == FileStatus.FAILED
    assert "cannot write file" in result.reason
    assert (tmp_path / "a.py").read_text() == "x = 1\n"


def test_process_file_dirty_without_head_blob_is_bumped(tmp_path):
    ctx = make_ctx(FakeRepo(tmp_path, history={"a.py": [2019]}), dirty_paths=frozenset({"a.py"}))
    result = process_file(tracked(tmp_path, "a.py", "x = 1\n"), ctx)

    assert result.years.end_year == THIS_YEAR


@pytest.mark.anyio
async def test_runner_processes_all_files(tmp_path):
    repo = FakeRepo(tmp_path, history={f"f{i}.py": [2020] for i in range(6)})
    files = [tracked(tmp_path, f"f{i}.py", "x = 1\n") for i in range(6)]

    summary = await Runner(make_ctx(repo), workers=3).run(files)

    assert [r.path for r in summary.results] == [f"f{i}.py" for i in range(6)]
    assert all(r.status == FileStatus.UPDATED for r in summary.results)
    assert not summary.interrupted


@pytest.mark.anyio
async def test_stop_request_skips_files_not_yet_started(tmp_path):
    repo = FakeRepo(tmp_path, history={f"f{i}.py": [2020] for i in range(5)})
    files = [tracked(tmp_path, f"f{i}.py", "x = 1\n") for i in range(5)]
    runner = Runner(make_ctx(repo), workers=1)
    repo.on_history = lambda path: runner.request_stop()

    summary = await runner.run(files)

    interrupted = [r for r in summary.results if r.reason == "interrupted"]
    completed = [r for r in summary.results if r.status == FileStatus.UPDATED]
    assert summary.interrupted
    assert len(completed) == 1
    assert len(interrupted) == 4
    # The file that was already running finished its write.
    assert (tmp_path / completed[0].path).read_text() == "# Copyright 2020 Acme\n\nx = 1\n"


def test_runner_requires_a_worker(tmp_path):
    with pytest.raises(ValueError):
        Runner(make_ctx(FakeRepo(tmp_path)), workers=0)


def test_line_comment_notice_in_javascript_is_updated_in_place(git_repo):
    git_repo.commit(2019, {"a.js": "// Copyright 2019 Acme\n\nconst x = 1;\n"})
    git_repo.commit(2022, {"a.js": "// Copyright 2019 Acme\n\nconst x = 2;\n"})

    results, _ = run(git_repo)

    assert results["a.js"].status == FileStatus.UPDATED
    text = git_repo.read("a.js")
    assert text == "// Copyright 2019-2022 Acme\n\nconst x = 2;\n"
    assert text.count("Copyright") == 1


def test_byte_order_mark_file_keeps_one_notice(git_repo):
    git_repo.commit(2019, {"a.py": "\ufeff# Copyright 2019 Acme\n\nx = 1\n"})
    git_repo.commit(2022, {"a.py": "\ufeff# Copyright 2019 Acme\n\nx = 2\n"})

    run(git_repo)

    assert git_repo.read("a.py") == "\ufeff# Copyright 2019-2022 Acme\n\nx = 2\n"


def test_head_contents_timeout_is_skipped(tmp_path):
    class SlowHeadRepo(FakeRepo):
        def head_contents(self, path, timeout=None):
            raise HistoryTimeoutError(f"reading HEAD contents timed out after {timeout}s")

    repo = SlowHeadRepo(tmp_path, history={"a.py": [2020]})
    ctx = make_ctx(repo, dirty_paths=frozenset({"a.py"}), history_timeout=5.0)
    result = process_file(tracked(tmp_path, "a.py", "x = 2\n"), ctx)

    assert result.status == FileStatus.SKIPPED
    assert "timed out after 5.0s" in result.reason
    assert (tmp_path / "a.py").read_text() == "x = 2\n"
