import pytest

from upload_panel.commands import CommandRunner

from .conftest import python_command


def _runner(code, timeout=5):
    return CommandRunner({"update": python_command(code)}, timeout=timeout)


def test_successful_command_returns_output_only():
    result = _runner("print('hello')").run("update")
    assert result.ok
    assert result.output.strip() == "hello"
    assert result.error == ""


def test_stderr_is_part_of_combined_output():
    code = "import sys; print('out'); sys.stdout.flush(); sys.stderr.write('err\\n')"
    result = _runner(code).run("update")
    assert result.output.splitlines() == ["out", "err"]


def test_failing_command_keeps_partial_output():
    code = "import sys; print('partial'); sys.stdout.flush(); sys.exit(3)"
    result = _runner(code).run("update")
    assert not result.ok
    assert result.error == "Command failed: exit status 3"
    assert result.output.strip() == "partial"


def test_missing_executable_is_reported(tmp_path):
    runner = CommandRunner({"update": (str(tmp_path / "does-not-exist"),)})
    result = runner.run("update")
    assert result.error.startswith("Command failed:")
    assert result.output == ""


def test_timeout_kills_command_and_keeps_output():
    code = "import sys, time; print('started'); sys.stdout.flush(); time.sleep(30)"
    result = _runner(code, timeout=2).run("update")
    assert result.error == "Command timed out after 2 seconds"
    assert "started" in result.output


def test_undecodable_output_is_replaced():
    code = "import sys; sys.stdout.buffer.write(b'ok \\xff')"
    result = _runner(code).run("update")
    assert result.output == "ok \ufffd"


def test_unknown_slot_is_a_programming_error():
    with pytest.raises(KeyError):
        _runner("pass").run("reboot")
