"""Tests for CLI commands, parsing and error handling."""

import json

import pytest
import yaml

from conftest import make_energy, make_kinematics, to_csv_text


@pytest.fixture
def capture_files(tmp_path):
    ik = tmp_path / "ik.csv"
    me = tmp_path / "me.csv"
    ik.write_text(to_csv_text(make_kinematics()))
    me.write_text(to_csv_text(make_energy()))
    return ik, me


def _run(monkeypatch, *argv):
    from fourb import cli

    monkeypatch.setattr("sys.argv", ["fourb", *argv])
    cli.main()


class TestScoreCommand:

    def test_score_writes_outputs(self, monkeypatch, capture_files, tmp_path, capsys):
        ik, me = capture_files
        out = tmp_path / "session.json"
        _run(monkeypatch, "score", str(ik), str(me), "-o", str(out),
             "--csv", str(tmp_path / "tables"), "--plot", str(tmp_path / "p.png"))
        record = json.loads(out.read_text())
        assert 20 <= record["composite_score"] <= 80
        assert (tmp_path / "tables" / "summary.csv").exists()
        assert (tmp_path / "p.png").exists()
        assert "Composite:" in capsys.readouterr().out

    def test_score_with_config(self, monkeypatch, capture_files, tmp_path):
        ik, me = capture_files
        cfg = tmp_path / "cfg.yaml"
        cfg.write_text(yaml.dump({"thresholds": {"pelvis_velocity": {"min": 650, "max": 1300}}}))
        out = tmp_path / "s.json"
        _run(monkeypatch, "score", str(ik), str(me), "--config", str(cfg), "-o", str(out))
        record = json.loads(out.read_text())
        assert record["swings"][0]["pelvis_velocity"] == 650

    def test_missing_input_exits_1(self, monkeypatch, tmp_path):
        with pytest.raises(SystemExit) as e:
            _run(monkeypatch, "score", str(tmp_path / "a.csv"), str(tmp_path / "b.csv"))
        assert e.value.code == 1


class TestInfoAndDefaults:

    def test_info(self, monkeypatch, capture_files, tmp_path, capsys):
        ik, me = capture_files
        out = tmp_path / "s.json"
        _run(monkeypatch, "score", str(ik), str(me), "-o", str(out))
        capsys.readouterr()
        _run(monkeypatch, "info", str(out))
        text = capsys.readouterr().out
        assert "Weakest link" in text
        assert "Bat KE" in text

    def test_defaults_stdout(self, monkeypatch, capsys):
        _run(monkeypatch, "defaults")
        cfg = yaml.safe_load(capsys.readouterr().out)
        assert cfg["thresholds"]["pelvis_velocity"]["min"] == 400.0

    def test_defaults_to_file(self, monkeypatch, tmp_path):
        path = tmp_path / "cfg.json"
        _run(monkeypatch, "defaults", "-o", str(path))
        assert json.loads(path.read_text())["window"]["contact_ratio"] == 0.8


class TestErrorHandling:

    def test_main_without_command_exits_1(self, monkeypatch):
        with pytest.raises(SystemExit) as e:
            _run(monkeypatch)
        assert e.value.code == 1

    @pytest.mark.parametrize("exc", [
        FileNotFoundError("missing"),
        ValueError("bad value"),
        ImportError("missing dep"),
    ])
    def test_errors_exit_1(self, monkeypatch, exc):
        from fourb import cli

        def _boom(_):
            raise exc

        monkeypatch.setattr(cli, "cmd_info", _boom)
        with pytest.raises(SystemExit) as e:
            _run(monkeypatch, "info", "session.json")
        assert e.value.code == 1

    def test_upstream_error_exits_1(self, monkeypatch, capsys):
        from fourb import cli
        from fourb.sources import UpstreamFetchError

        def _boom(_):
            raise UpstreamFetchError("unreachable")

        monkeypatch.setattr(cli, "cmd_score", _boom)
        with pytest.raises(SystemExit) as e:
            _run(monkeypatch, "score", "http://x/ik.csv", "http://x/me.csv")
        assert e.value.code == 1
        assert "Fetch failed" in capsys.readouterr().err

    def test_keyboard_interrupt_exits_130(self, monkeypatch):
        from fourb import cli

        def _boom(_):
            raise KeyboardInterrupt()

        monkeypatch.setattr(cli, "cmd_info", _boom)
        with pytest.raises(SystemExit) as e:
            _run(monkeypatch, "info", "session.json")
        assert e.value.code == 130
