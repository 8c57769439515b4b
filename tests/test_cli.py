import json

from salescoach import cli
from salescoach.config import Config, load_config, save_config

GOOD_RESPONSE = json.dumps(
    {
        "summary": "Good call.",
        "transcript": [{"speaker": "Salesperson", "text": "Hi", "timestamp": "00:00"}],
        "sentimentGraph": [{"time": "Start", "engagement": 70}],
        "coaching": {"strengths": ["Good opener"], "missedOpportunities": ["No clear CTA"]},
    }
)


class StubEngine:
    def __init__(self, text):
        self.text = text

    def submit(self, encoded, schema):
        return self.text


def _config(tmp_path):
    path = tmp_path / "salescoach_config.yml"
    save_config(str(path), Config(log_dir=str(tmp_path / "logs")))
    return str(path)


def test_config_command_writes_defaults(tmp_path):
    path = tmp_path / "cfg.yml"
    assert cli.main(["config", "--path", str(path)]) == 0
    assert load_config(str(path)).engine.model == "gemini-2.5-flash"
    assert cli.main(["config", "--path", str(path)]) == 1
    assert cli.main(["config", "--path", str(path), "--force"]) == 0


def test_analyze_writes_outputs(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(
        cli.GeminiEngine, "from_config", classmethod(lambda cls, cfg: StubEngine(GOOD_RESPONSE))
    )
    audio = tmp_path / "call.mp3"
    audio.write_bytes(b"ID3" * 100)
    out = tmp_path / "call.json"
    report = tmp_path / "call.md"

    code = cli.main(
        [
            "analyze",
            str(audio),
            "--config",
            _config(tmp_path),
            "--out",
            str(out),
            "--report",
            str(report),
        ]
    )

    assert code == 0
    assert json.loads(out.read_text(encoding="utf-8")) == json.loads(GOOD_RESPONSE)
    assert "# Call Analysis: call.mp3" in report.read_text(encoding="utf-8")
    assert "Summary: Good call." in capsys.readouterr().out


def test_analyze_reports_failure(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(
        cli.GeminiEngine, "from_config", classmethod(lambda cls, cfg: StubEngine(""))
    )
    audio = tmp_path / "call.mp3"
    audio.write_bytes(b"ID3")
    assert cli.main(["analyze", str(audio), "--config", _config(tmp_path)]) == 1
    output = capsys.readouterr().out
    assert "Analysis failed" in output
    assert "EmptyResponse" in output


def test_analyze_rejects_non_audio(tmp_path, capsys):
    doc = tmp_path / "notes.txt"
    doc.write_text("hello", encoding="utf-8")
    assert cli.main(["analyze", str(doc), "--config", _config(tmp_path)]) == 1
    assert "valid audio file" in capsys.readouterr().out


def test_devices_without_audio_backend(monkeypatch, capsys):
    def unavailable():
        raise RuntimeError("sounddevice is required for recording.")

    monkeypatch.setattr(cli, "list_input_devices", unavailable)
    assert cli.main(["devices"]) == 1
    assert "sounddevice is required" in capsys.readouterr().out
