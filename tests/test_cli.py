"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from conftest import StaticOCRProvider
from scholarcheck.cli import load_snapshot, main

TRANSCRIPT_TEXT = "General Weighted Average: 1.75\nStudent No. 2021-12345"

SNAPSHOT = {
    "student_number": "2021-12345",
    "first_name": "Juan",
    "last_name": "Dela Cruz",
    "gwa": 1.75,
    "college": "College of Arts and Sciences",
}


@pytest.fixture
def provider() -> StaticOCRProvider:
    return StaticOCRProvider(TRANSCRIPT_TEXT)


@pytest.fixture
def patched_provider(provider: StaticOCRProvider):
    with patch("scholarcheck.cli.create_ocr_provider", return_value=provider):
        yield provider


@pytest.fixture
def document_file(tmp_path: Path) -> Path:
    path = tmp_path / "tor.png"
    path.write_bytes(b"png-bytes")
    return path


@pytest.fixture
def snapshot_file(tmp_path: Path) -> Path:
    path = tmp_path / "snapshot.yaml"
    path.write_text(yaml.dump({"applicant_snapshot": SNAPSHOT}))
    return path


class TestLoadSnapshot:
    """Tests for reading applicant snapshots from YAML."""

    def test_nested_key(self, snapshot_file: Path) -> None:
        snapshot = load_snapshot(snapshot_file)
        assert snapshot.student_number == "2021-12345"
        assert snapshot.gwa == 1.75

    def test_top_level_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "flat.yaml"
        path.write_text(yaml.dump(SNAPSHOT))
        assert load_snapshot(path).last_name == "Dela Cruz"

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_snapshot(path).student_number is None


class TestExtractCommand:
    """Tests for the extract subcommand."""

    def test_prints_json(self, patched_provider, document_file: Path, capsys) -> None:
        main(["extract", str(document_file), "-t", "transcript"])

        data = json.loads(capsys.readouterr().out)
        assert data["filename"] == "tor.png"
        assert data["document_type"] == "transcript"
        assert data["raw_text"] == TRANSCRIPT_TEXT
        assert data["extracted_fields"] == {"gwa": 1.75, "student_number": "2021-12345"}
        assert patched_provider.calls == [(b"png-bytes", "image/png")]

    def test_writes_output_file(
        self, patched_provider, document_file: Path, tmp_path: Path, capsys
    ) -> None:
        output = tmp_path / "out" / "result.json"

        main(["extract", str(document_file), "-o", str(output)])

        assert "Output written to" in capsys.readouterr().out
        data = json.loads(output.read_text())
        assert data["document_type"] == "other"

    def test_missing_file(self, patched_provider, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", str(tmp_path / "missing.png")])
        assert exc_info.value.code == 1

    def test_ocr_unavailable(self, document_file: Path, capsys) -> None:
        with patch("scholarcheck.cli.create_ocr_provider", return_value=None):
            with pytest.raises(SystemExit) as exc_info:
                main(["extract", str(document_file)])
        assert exc_info.value.code == 1
        assert "OCR is unavailable" in capsys.readouterr().err

    def test_unknown_document_type(self, document_file: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", str(document_file), "-t", "passport"])
        assert exc_info.value.code == 2


class TestVerifyCommand:
    """Tests for the verify subcommand."""

    def test_verified_report(
        self, patched_provider, document_file: Path, snapshot_file: Path, capsys
    ) -> None:
        main(["verify", str(document_file), "-t", "transcript", "-s", str(snapshot_file)])

        data = json.loads(capsys.readouterr().out)
        assert data["status"] == "completed"
        assert data["overall_match"] == "verified"
        assert data["confidence"] == 1.0
        assert data["document_name"] == "tor.png"

    def test_mismatch_report(
        self, provider, patched_provider, document_file: Path, tmp_path: Path, capsys
    ) -> None:
        provider.text = "Student No. 2021-99999"
        snapshot = tmp_path / "snap.yaml"
        snapshot.write_text(yaml.dump(SNAPSHOT))

        main(["verify", str(document_file), "-t", "transcript", "-s", str(snapshot)])

        data = json.loads(capsys.readouterr().out)
        assert data["overall_match"] == "mismatch"
        assert data["fields"][0]["severity"] == "critical"

    def test_missing_snapshot(self, patched_provider, document_file: Path, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(
                [
                    "verify",
                    str(document_file),
                    "-t",
                    "transcript",
                    "-s",
                    str(tmp_path / "missing.yaml"),
                ]
            )
        assert exc_info.value.code == 1

    def test_type_is_required(self, document_file: Path, snapshot_file: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["verify", str(document_file), "-s", str(snapshot_file)])
        assert exc_info.value.code == 2


class TestServeCommand:
    """Tests for the serve subcommand."""

    @patch("scholarcheck.cli.uvicorn.run")
    def test_serve_with_overrides(self, mock_run: MagicMock) -> None:
        main(["serve", "--host", "127.0.0.1", "--port", "9000"])
        mock_run.assert_called_once_with(
            "scholarcheck.api.app:app", host="127.0.0.1", port=9000
        )

    @patch("scholarcheck.cli.uvicorn.run")
    def test_serve_uses_config(self, mock_run: MagicMock, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text(yaml.dump({"api": {"host": "10.0.0.5", "port": 8080}}))

        main(["-c", str(config), "serve"])

        mock_run.assert_called_once_with(
            "scholarcheck.api.app:app", host="10.0.0.5", port=8080
        )


class TestMain:
    """Tests for argument dispatch."""

    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "usage" in capsys.readouterr().out.lower()
