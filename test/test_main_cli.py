import shlex
import textwrap

import pytest

import main as cortex_main
from commands import ReferenceLoader
from config import Config


class _DummyConsole:
    def __init__(self):
        self.lines: list[str] = []

    def print(self, *args, **kwargs):  # noqa: ARG002
        self.lines.append(" ".join(str(a) for a in args))


@pytest.fixture
def cli(monkeypatch, tmp_path):
    calls = {"error": [], "warning": [], "markdown": [], "transcript": [], "logged": []}

    monkeypatch.setattr(cortex_main, "ensure_runtime_dirs", lambda create_logs=False: None)
    monkeypatch.setattr(
        cortex_main,
        "setup_logger",
        lambda command=None: calls["logged"].append(command) or str(tmp_path / "run.log"),
    )
    monkeypatch.setattr(cortex_main, "close_logger", lambda: None)
    monkeypatch.setattr(
        cortex_main.terminal_ui, "print_log_location", lambda path: calls["logged"].append(path)
    )
    monkeypatch.setattr(cortex_main, "get_commands_dir", lambda: str(tmp_path / "user-commands"))
    monkeypatch.setattr(Config, "COMMANDS_DIRS", [])
    monkeypatch.setattr(Config, "SCRIPT_FAILURE_POLICY", "abort")
    monkeypatch.setattr(Config, "SCRIPT_TIMEOUT", 30.0)
    monkeypatch.setattr(Config, "REFERENCE_CACHE", False)
    monkeypatch.setattr(Config, "TUI_THEME", "dark")

    monkeypatch.setattr(
        cortex_main.terminal_ui,
        "print_error",
        lambda msg, title="Error": calls["error"].append((title, msg)),
    )
    monkeypatch.setattr(
        cortex_main.terminal_ui, "print_warning", lambda msg: calls["warning"].append(msg)
    )
    monkeypatch.setattr(
        cortex_main.terminal_ui, "print_markdown", lambda text: calls["markdown"].append(text)
    )
    monkeypatch.setattr(
        cortex_main.terminal_ui,
        "print_transcript",
        lambda text, raw=False: calls["transcript"].append((text, raw)),
    )
    monkeypatch.setattr(cortex_main.terminal_ui, "console", _DummyConsole())
    return calls


def test_main_start_ready(cli, plugin_root) -> None:
    status = cortex_main.main(["--root", str(plugin_root), "--raw", "start"])

    assert status == 0
    assert cli["error"] == []
    transcript, raw = cli["transcript"][0]
    assert raw is True
    assert "Agents have identity." in transcript
    assert "/create-agent" in transcript


def test_main_missing_reference(cli, plugin_root) -> None:
    (plugin_root / "references" / "CORTEX.md").unlink()

    status = cortex_main.main(["--root", str(plugin_root), "/start"])

    assert status == 1
    assert cli["transcript"] == []
    title, message = cli["error"][0]
    assert title == "ReferenceNotFound"
    assert str(plugin_root / "references" / "CORTEX.md") in message


def test_main_unknown_command(cli, plugin_root) -> None:
    status = cortex_main.main(["--root", str(plugin_root), "nope"])

    assert status == 1
    assert cli["error"][0][0] == "UnknownCommand"


def test_main_list(cli, plugin_root) -> None:
    status = cortex_main.main(["--root", str(plugin_root), "--list"])

    assert status == 0
    assert "`/start`" in cli["markdown"][0]


def test_main_without_command_lists(cli, plugin_root) -> None:
    assert cortex_main.main(["--root", str(plugin_root)]) == 0
    assert cli["markdown"]


def test_main_custom_command_with_var(cli, plugin_root, tmp_path) -> None:
    commands_dir = tmp_path / "extra"
    commands_dir.mkdir()
    (commands_dir / "greet.md").write_text(
        textwrap.dedent(
            """
            ---
            description: Greet someone
            ---

            Hello ${WHO}, args: ${ARGUMENTS}
            """
        ).strip()
    )

    status = cortex_main.main(
        [
            "--root",
            str(plugin_root),
            "--commands-dir",
            str(commands_dir),
            "--var",
            "WHO=world",
            "greet",
            "a",
            "b",
        ]
    )

    assert status == 0
    assert cli["transcript"][0][0] == "Hello world, args: a b"


def test_main_duplicate_commands(cli, plugin_root, tmp_path) -> None:
    first = tmp_path / "one"
    second = tmp_path / "two"
    for directory in (first, second):
        directory.mkdir()
        (directory / "greet.md").write_text("hi")

    status = cortex_main.main(
        ["--root", str(plugin_root), "--commands-dir", str(first), "--commands-dir", str(second)]
    )

    assert status == 1
    assert cli["error"][0][0] == "DuplicateCommand"


def test_main_invalid_config(cli, plugin_root, monkeypatch) -> None:
    monkeypatch.setattr(Config, "SCRIPT_FAILURE_POLICY", "sometimes")

    status = cortex_main.main(["--root", str(plugin_root), "start"])

    assert status == 1
    assert cli["error"][0][0] == "Configuration Error"


def test_main_rejects_bad_var(cli) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cortex_main.main(["--var", "novalue", "start"])
    assert exc_info.value.code == 2


def test_command_directories_deduplicates(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(Config, "COMMANDS_DIRS", [str(tmp_path / "extra")])
    monkeypatch.setattr(cortex_main, "get_commands_dir", lambda: str(tmp_path / "user"))

    directories = cortex_main.command_directories(
        str(tmp_path), [str(tmp_path / "extra"), str(tmp_path / "commands")]
    )

    assert directories == [
        str((tmp_path / "commands").resolve()),
        str((tmp_path / "user").resolve()),
        str((tmp_path / "extra").resolve()),
    ]


def write_command(directory, name: str, script) -> None:
    directory.mkdir(exist_ok=True)
    (directory / f"{name}.md").write_text(
        "---\n"
        "allowed-tools: Bash\n"
        "---\n"
        "\n"
        "```bash\n"
        f"{shlex.quote(str(script))}\n"
        "```\n"
        "\n"
        "after the script\n"
    )


def test_main_on_script_failure_continue(cli, plugin_root, make_script, tmp_path) -> None:
    failing = make_script("fail.sh", "echo nope >&2\nexit 3\n")
    write_command(tmp_path / "extra", "flaky", failing)

    status = cortex_main.main(
        [
            "--root",
            str(plugin_root),
            "--commands-dir",
            str(tmp_path / "extra"),
            "--on-script-failure",
            "continue",
            "--raw",
            "flaky",
        ]
    )

    assert status == 0
    assert cli["error"] == []
    transcript, _ = cli["transcript"][0]
    assert "[ScriptFailed:" in transcript
    assert transcript.endswith("after the script")


def test_main_on_script_failure_overrides_config(
    cli, plugin_root, make_script, tmp_path, monkeypatch
) -> None:
    monkeypatch.setattr(Config, "SCRIPT_FAILURE_POLICY", "continue")
    failing = make_script("fail.sh", "exit 3\n")
    write_command(tmp_path / "extra", "flaky", failing)

    status = cortex_main.main(
        [
            "--root",
            str(plugin_root),
            "--commands-dir",
            str(tmp_path / "extra"),
            "--on-script-failure",
            "abort",
            "flaky",
        ]
    )

    assert status == 1
    assert cli["transcript"] == []
    assert cli["error"][0][0] == "ScriptFailed"


@pytest.mark.parametrize("timeout", ["0", "-1"])
def test_main_rejects_non_positive_timeout(cli, plugin_root, timeout) -> None:
    status = cortex_main.main(["--root", str(plugin_root), "--timeout", timeout, "start"])

    assert status == 1
    assert cli["error"][0][0] == "Configuration Error"
    assert cli["transcript"] == []


def test_main_timeout_reaches_runner(cli, plugin_root, make_script, tmp_path) -> None:
    slow = make_script("slow.sh", "sleep 30\n")
    write_command(tmp_path / "extra", "slow", slow)

    status = cortex_main.main(
        [
            "--root",
            str(plugin_root),
            "--commands-dir",
            str(tmp_path / "extra"),
            "--timeout",
            "0.2",
            "slow",
        ]
    )

    assert status == 1
    title, message = cli["error"][0]
    assert title == "ScriptTimeout"
    assert "0.2" in message


def test_main_cache_references(cli, plugin_root, monkeypatch) -> None:
    created: list[bool] = []

    class RecordingLoader(ReferenceLoader):
        def __init__(self, cache=False, **kwargs):
            created.append(cache)
            super().__init__(cache=cache, **kwargs)

    monkeypatch.setattr(cortex_main, "ReferenceLoader", RecordingLoader)

    assert cortex_main.main(["--root", str(plugin_root), "--cache-references", "start"]) == 0
    assert cortex_main.main(["--root", str(plugin_root), "start"]) == 0
    assert created == [True, False]


def test_main_verbose_names_log_after_command(cli, plugin_root, tmp_path) -> None:
    assert cortex_main.main(["--root", str(plugin_root), "--verbose", "/start"]) == 0
    assert cli["logged"] == ["/start", str(tmp_path / "run.log")]


def test_main_verbose_list_log(cli, plugin_root, tmp_path) -> None:
    assert cortex_main.main(["--root", str(plugin_root), "-v", "--list"]) == 0
    assert cli["logged"] == [None, str(tmp_path / "run.log")]
