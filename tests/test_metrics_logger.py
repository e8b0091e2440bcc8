import json

from wav_autotune.metrics_logger import RunReportLogger
from wav_autotune.params import CorrectionParameters
from wav_autotune.pipeline import RunStatus, RunSummary


def _summary(failed=0):
    return RunSummary(
        status=RunStatus.COMPLETED,
        frames_total=8,
        frames_processed=8,
        frames_failed=failed,
        failed_frames=list(range(failed)),
        output_path="/tmp/take_3.wav",
    )


def test_record_appends_entries(tmp_path):
    path = tmp_path / "logs" / "runs.json"
    logger = RunReportLogger(path)
    entry = logger.record(_summary(failed=2), CorrectionParameters(key=5))
    assert entry["render_name"] == "take_3"
    assert entry["fallback_ratio"] == 0.25
    assert entry["key_name"] == "B Major"

    again = RunReportLogger(path)
    again.record(_summary(), CorrectionParameters(), name="second")
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert [e["render_name"] for e in saved] == ["take_3", "second"]
    assert saved[0]["summary"]["failed_frames"] == [0, 1]


def test_corrupt_log_starts_over(tmp_path):
    path = tmp_path / "runs.json"
    path.write_text("{not json", encoding="utf-8")
    logger = RunReportLogger(path)
    assert logger.logs == []
    logger.record(_summary(), CorrectionParameters())
    assert len(json.loads(path.read_text(encoding="utf-8"))) == 1

