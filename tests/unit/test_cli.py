from __future__ import annotations

import json
from unittest import mock

from reelsmith import cli
from reelsmith.adapters.script import fallback_script
from reelsmith.errors import AssemblyError
from reelsmith.schemas import JobResult


def test_parser_run_flags():
    args = cli.build_parser().parse_args(["run", "--prompt", "cats", "--youtube", "--tags", "a,b"])
    assert args.command == "run"
    assert args.youtube is True
    assert args.tiktok is False
    assert args.tags == "a,b"


def test_run_prints_result(monkeypatch, capsys):
    orchestrator = mock.Mock()
    orchestrator.run.side_effect = lambda job_id, request, report: JobResult(
        success=True, job_id=job_id, final_video_path="temp/out.mp4", script_data=fallback_script(request.prompt)
    )
    monkeypatch.setattr(cli.JobOrchestrator, "from_config", classmethod(lambda cls, config: orchestrator))

    assert cli.main(["run", "--prompt", "cats"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["success"] is True
    assert out["finalVideoPath"] == "temp/out.mp4"


def test_run_failure_exits_nonzero(monkeypatch, capsys):
    orchestrator = mock.Mock()
    orchestrator.run.side_effect = AssemblyError("mux failed")
    monkeypatch.setattr(cli.JobOrchestrator, "from_config", classmethod(lambda cls, config: orchestrator))

    assert cli.main(["run", "--prompt", "cats"]) == 1
    assert "mux failed" in capsys.readouterr().err


def test_run_blank_prompt_reports_invalid_request(monkeypatch, capsys):
    from_config = mock.Mock()
    monkeypatch.setattr(cli.JobOrchestrator, "from_config", from_config)

    assert cli.main(["run", "--prompt", "  "]) == 1

    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert err["success"] is False
    assert err["error"] == "Invalid request"
    from_config.assert_not_called()
