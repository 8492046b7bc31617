# Tests for the vault engine subprocess adapter

import sys
from pathlib import Path

import pytest

from passlock.vault.engine import EngineResult, VaultEngineAdapter
from passlock.vault.errors import AlreadyExists, EngineInvocationFailed, InvalidInput


def inline_engine(code: str):
    """Engine command running ``code``; sys.argv[1:] is <action> <creds...>."""
    return [sys.executable, "-c", code]


ECHO_ENGINE = inline_engine(
    "import os, sys; print(' '.join(sys.argv[1:])); print(os.getcwd())"
)

FAILING_ENGINE = inline_engine(
    "import sys; print('Error: bad password', file=sys.stderr); sys.exit(3)"
)

# Records every invocation so tests can prove the engine was never started
MARKER_ENGINE = inline_engine(
    "open('invoked.marker', 'a').write(' '.join(__import__('sys').argv[1:]))"
)


def _adapter(home, command, timeout=None):
    return VaultEngineAdapter(
        command=command,
        workdir=home,
        vault_path=home / ".passlock.vault",
        timeout=timeout,
    )


class TestInvocation:
    def test_success_result(self, home):
        result = _adapter(home, ECHO_ENGINE).unlock("pw")

        assert isinstance(result, EngineResult)
        assert result.ok is True
        assert result.returncode == 0

    def test_argv_and_workdir(self, home):
        output = _adapter(home, ECHO_ENGINE).sync("s3cret").output.splitlines()

        assert output[0] == "sync s3cret"
        assert Path(output[1]).resolve() == home.resolve()

    def test_failure_result_keeps_combined_output(self, home):
        result = _adapter(home, FAILING_ENGINE).unlock("wrong")

        assert result.ok is False
        assert result.returncode == 3
        assert result.output == "Error: bad password"

    def test_output_is_stripped(self, home):
        engine = inline_engine("print('\\n  done  \\n')")
        assert _adapter(home, engine).unlock("pw").output == "done"

    def test_missing_executable(self, home):
        adapter = _adapter(home, [str(home / "no-such-engine")])

        with pytest.raises(EngineInvocationFailed):
            adapter.unlock("pw")

    def test_timeout(self, home):
        engine = inline_engine("import time; time.sleep(10)")
        adapter = _adapter(home, engine, timeout=0.5)

        with pytest.raises(EngineInvocationFailed, match="did not finish"):
            adapter.sync("pw")

    def test_empty_command_rejected(self, home):
        with pytest.raises(ValueError):
            _adapter(home, [])


class TestCreateChecks:
    def test_create_invokes_engine(self, home):
        result = _adapter(home, MARKER_ENGINE).create("abcd", "abcd")

        assert result.ok
        assert (home / "invoked.marker").read_text() == "create abcd abcd"

    def test_existing_vault(self, home):
        (home / ".passlock.vault").write_text("salt:data")

        with pytest.raises(AlreadyExists):
            _adapter(home, MARKER_ENGINE).create("abcd", "abcd")
        assert not (home / "invoked.marker").exists()

    @pytest.mark.parametrize("password, confirmation", [
        ("", ""),
        ("abcd", ""),
        ("abcd", "abce"),
        ("abc", "abc"),
    ])
    def test_invalid_input_never_invokes_engine(self, home, password, confirmation):
        with pytest.raises(InvalidInput):
            _adapter(home, MARKER_ENGINE).create(password, confirmation)
        assert not (home / "invoked.marker").exists()

    def test_vault_exists(self, home):
        adapter = _adapter(home, MARKER_ENGINE)
        assert adapter.vault_exists() is False

        (home / ".passlock.vault").write_text("x:y")
        assert adapter.vault_exists() is True
