"""Unit tests for the command line entry point."""

import sys

import pytest

from pusher.main import main, read_mnemonic


class TestReadMnemonic:
    def test_reads_file(self, tmp_path) -> None:
        path = tmp_path / "mnemonic"
        path.write_text("test test junk\n")
        assert read_mnemonic(str(path)) == "test test junk"

    def test_env_fallback(self, monkeypatch) -> None:
        monkeypatch.setenv("MNEMONIC", "from env")
        assert read_mnemonic(None) == "from env"

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(OSError):
            read_mnemonic(str(tmp_path / "missing"))


class TestMain:
    """Test argument validation before anything is started."""

    @staticmethod
    def run_main(monkeypatch, *argv: str) -> None:
        monkeypatch.delenv("MNEMONIC", raising=False)
        monkeypatch.setattr(
            sys,
            "argv",
            [
                "pusher",
                "--evm-endpoint", "http://localhost:8545",
                "--pyth-contract", "0xDd24F84d36BF92C65F92307595335bdFab5Bbd21",
                "--price-config-file", "price-config.json",
                *argv,
            ],
        )
        main()

    def test_unreadable_mnemonic_file(self, monkeypatch, tmp_path, capsys) -> None:
        """A missing mnemonic file is a usage error, not a traceback."""
        with pytest.raises(SystemExit) as exc_info:
            self.run_main(monkeypatch, "--mnemonic-file", str(tmp_path / "missing"))

        assert exc_info.value.code == 2
        assert "Cannot read mnemonic file" in capsys.readouterr().err

    def test_missing_mnemonic(self, monkeypatch, capsys) -> None:
        monkeypatch.delenv("MNEMONIC_FILE", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            self.run_main(monkeypatch)

        assert exc_info.value.code == 2
        assert "A mnemonic is required" in capsys.readouterr().err

    def test_request_timeout_must_be_positive(self, monkeypatch, capsys) -> None:
        with pytest.raises(SystemExit):
            self.run_main(monkeypatch, "--request-timeout", "0")

        assert "--request-timeout must be positive" in capsys.readouterr().err
