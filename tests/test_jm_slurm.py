# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from pathlib import Path
from unittest.mock import patch

import pytest

from hpcjm_lib.core.error import (
    JMConfigurationError,
    JMExecutionError,
    JMParseError,
)
from hpcjm_lib.core.executor import ExecResult
from hpcjm_lib.core.system import SystemConfig
from hpcjm_lib.jm import JobManager, Slurm
from hpcjm_lib.jm.slurm import read_error_file, read_output_file
from hpcjm_lib.job import AppInfo, Job, JobStatus
from hpcjm_lib.launcher import run as launch

APP = AppInfo("bench", "bench", Path("/opt/app/bench"))
ACK = ExecResult("Submitted batch job 4242\n", "", 0)


@pytest.fixture
def slurm(tmp_path):
    sbatch = tmp_path / "sbatch"
    sbatch.write_text("")
    return JobManager(Slurm, sbatch, ("--account", "lab"))


@pytest.fixture
def sys_cfg(tmp_path):
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return SystemConfig(scratch_dir=scratch)


def _job(**kwargs) -> Job:
    return Job(name="bench", np=4, nnodes=2, partition="gpu", app=APP, **kwargs)


def _squeue(name):
    return "/usr/bin/squeue" if name == "squeue" else None


def test_submit_non_blocking_then_job_status(slurm, sys_cfg):
    job = _job(non_blocking=True)

    with patch("hpcjm_lib.jm.slurm.run_command", return_value=ACK) as run:
        result = slurm.submit(job, sys_cfg)

    assert result == ACK
    assert job.id == 4242
    assert job.exec_time is not None

    cmd = run.call_args.args[0]
    assert cmd.bin_path == slurm.bin_path
    assert cmd.args == ["--account", "lab", str(job.batch_script)]
    assert "-W" not in cmd.args

    content = job.batch_script.read_text()
    assert "#SBATCH -p gpu" in content
    assert "#SBATCH -N 2" in content

    with (
        patch("shutil.which", side_effect=_squeue),
        patch(
            "hpcjm_lib.jm.slurm.run_command",
            return_value=ExecResult("ST\nPD\n", "", 0),
        ),
    ):
        statuses = slurm.jobStatus([job.id])

    assert statuses == [JobStatus.QUEUED]
    assert all(isinstance(s, JobStatus) for s in statuses)


def test_submit_blocking_collects_output(slurm, sys_cfg):
    job = _job(args=["--exclusive"])
    (sys_cfg.scratch_dir / "bench.out").write_text("result 42\n")
    (sys_cfg.scratch_dir / "bench.err").write_text("warning\n")

    with patch("hpcjm_lib.jm.slurm.run_command", return_value=ACK) as run:
        result = slurm.submit(job, sys_cfg)

    assert run.call_args.args[0].args == [
        "--account",
        "lab",
        "--exclusive",
        "-W",
        str(job.batch_script),
    ]
    assert result == ExecResult("result 42\n", "warning\n", 0)
    assert job.getOutput(sys_cfg) == "result 42\n"
    assert job.getError(sys_cfg) == "warning\n"
    # without scratch directory, the buffered output is returned
    assert job.getOutput() == "result 42\n"


def test_submit_blocking_missing_output_files(slurm, sys_cfg):
    with (
        patch("hpcjm_lib.jm.slurm.run_command", return_value=ACK),
        pytest.raises(JMExecutionError, match="Unable to read output"),
    ):
        slurm.submit(_job(), sys_cfg)


def test_submit_without_application_does_not_run_command(slurm, sys_cfg):
    job = Job(name="empty")

    with (
        patch("hpcjm_lib.jm.slurm.run_command") as run,
        pytest.raises(JMConfigurationError),
    ):
        slurm.submit(job, sys_cfg)

    run.assert_not_called()


def test_submit_undefined_job(slurm, sys_cfg):
    with pytest.raises(JMConfigurationError, match="Job is undefined"):
        slurm.submit(None, sys_cfg)


def test_submit_missing_sbatch(tmp_path, sys_cfg):
    handle = JobManager(Slurm, tmp_path / "missing")

    with pytest.raises(JMConfigurationError, match="does not exist"):
        handle.submit(_job(), sys_cfg)


def test_submit_missing_scratch(slurm, tmp_path):
    with pytest.raises(JMConfigurationError, match="Scratch directory"):
        slurm.submit(_job(), SystemConfig(scratch_dir=tmp_path / "missing"))

    with pytest.raises(JMConfigurationError, match="Scratch directory is undefined"):
        slurm.submit(_job(), SystemConfig())


def test_submit_existing_script_is_not_overwritten(slurm, sys_cfg):
    script = sys_cfg.scratch_dir / "job.sh"
    script.write_text("#!/bin/bash\necho original\n")

    with (
        patch("hpcjm_lib.jm.slurm.run_command") as run,
        pytest.raises(JMConfigurationError, match="would be overwritten"),
    ):
        slurm.submit(_job(batch_script=script), sys_cfg)

    run.assert_not_called()
    assert script.read_text() == "#!/bin/bash\necho original\n"


def test_submit_user_script(slurm, sys_cfg):
    script = sys_cfg.scratch_dir / "user.sh"
    script.write_text("#!/bin/bash\nhostname\n")
    job = Job(name="user", batch_script=script, non_blocking=True)

    with patch("hpcjm_lib.jm.slurm.run_command", return_value=ACK) as run:
        slurm.submit(job, sys_cfg)

    assert run.call_args.args[0].args[-1] == str(script)
    assert script.read_text() == "#!/bin/bash\nhostname\n"


def test_submit_unparsable_acknowledgment(slurm, sys_cfg):
    with (
        patch(
            "hpcjm_lib.jm.slurm.run_command",
            return_value=ExecResult("sbatch: queued\n", "", 0),
        ),
        pytest.raises(JMParseError, match="Unable to get job ID"),
    ):
        slurm.submit(_job(non_blocking=True), sys_cfg)


@pytest.mark.parametrize(
    "output,expected",
    [
        ("Submitted batch job 12\n", 12),
        ("sbatch: warning: something\nSubmitted batch job 7\n", 7),
    ],
)
def test_parse_job_id(output, expected):
    assert Slurm._parseJobId(output) == expected


@pytest.mark.parametrize("output", ["", "Submitted batch job abc\n", "error\n"])
def test_parse_job_id_invalid(output):
    with pytest.raises(JMParseError) as exc_info:
        Slurm._parseJobId(output)

    assert exc_info.value.text == output


@pytest.mark.parametrize(
    "stdout,expected",
    [
        ("ST\nR\n", JobStatus.RUNNING),
        ("ST\nPD\n", JobStatus.QUEUED),
        ("ST\nCG\n", JobStatus.UNKNOWN),
        ("ST\n", JobStatus.DONE),
        ("", JobStatus.DONE),
    ],
)
def test_get_job_status(stdout, expected):
    with patch(
        "hpcjm_lib.jm.slurm.run_command", return_value=ExecResult(stdout, "", 0)
    ):
        assert Slurm._getJobStatus(Path("/usr/bin/squeue"), 1) == expected


def test_get_job_status_invalid_job_id_is_done():
    result = ExecResult("", "slurm_load_jobs error: Invalid job id specified\n", 1)

    with patch("hpcjm_lib.jm.slurm.run_command", return_value=result):
        assert Slurm._getJobStatus(Path("/usr/bin/squeue"), 1) == JobStatus.DONE


def test_get_job_status_other_failure_raises():
    result = ExecResult("", "slurm_load_jobs error: Socket timed out\n", 1)

    with (
        patch("hpcjm_lib.jm.slurm.run_command", return_value=result),
        pytest.raises(JMExecutionError, match="Socket timed out"),
    ):
        Slurm._getJobStatus(Path("/usr/bin/squeue"), 1)


def test_get_job_status_stopped_without_sacct():
    with (
        patch("shutil.which", side_effect=_squeue),
        patch(
            "hpcjm_lib.jm.slurm.run_command",
            return_value=ExecResult("ST\nST\n", "", 0),
        ),
    ):
        assert Slurm._getJobStatus(Path("/usr/bin/squeue"), 1) == JobStatus.STOPPED


@pytest.mark.parametrize(
    "sacct_output,expected",
    [("COMPLETED\n", JobStatus.DONE), ("SUSPENDED\n", JobStatus.STOPPED)],
)
def test_get_job_status_stopped_refined_by_sacct(sacct_output, expected):
    with (
        patch("shutil.which", return_value="/usr/bin/sacct"),
        patch(
            "hpcjm_lib.jm.slurm.run_command",
            side_effect=[
                ExecResult("ST\nST\n", "", 0),
                ExecResult(sacct_output, "", 0),
            ],
        ),
    ):
        assert Slurm._getJobStatus(Path("/usr/bin/squeue"), 1) == expected


def test_get_job_status_stopped_sacct_failure():
    with (
        patch("shutil.which", return_value="/usr/bin/sacct"),
        patch(
            "hpcjm_lib.jm.slurm.run_command",
            side_effect=[
                ExecResult("ST\nST\n", "", 0),
                JMExecutionError("sacct failed"),
            ],
        ),
    ):
        assert Slurm._getJobStatus(Path("/usr/bin/squeue"), 1) == JobStatus.STOPPED


def test_job_status_without_squeue(slurm):
    with (
        patch("shutil.which", return_value=None),
        pytest.raises(JMConfigurationError, match="squeue"),
    ):
        slurm.jobStatus([1])


def test_num_jobs(slurm):
    output = (
        "JOBID PARTITION NAME USER ST TIME NODES NODELIST(REASON)\n"
        "  101 gpu bench user R 0:01 2 node[1-2]\n"
        "  102 gpu bench user PD 0:00 2 (Resources)\n"
        "\n"
    )

    with (
        patch("shutil.which", side_effect=_squeue),
        patch(
            "hpcjm_lib.jm.slurm.run_command", return_value=ExecResult(output, "", 0)
        ) as run,
    ):
        assert slurm.numJobs("gpu", "user") == 2

    assert run.call_args.args[0].args == ["-p", "gpu", "-u", "user"]


def test_read_output_file_unreadable_returns_empty(sys_cfg):
    job = _job(out_buffer="buffered", err_buffer="buffered")

    assert read_output_file(job, sys_cfg) == ""
    assert read_error_file(job, sys_cfg) == ""
    assert read_output_file(job, None) == "buffered"
    assert read_error_file(job, SystemConfig()) == "buffered"


def test_submit_blocking_failed_job_keeps_id_and_output(slurm, sys_cfg):
    job = _job()
    (sys_cfg.scratch_dir / "bench.out").write_text("step 1\n")
    (sys_cfg.scratch_dir / "bench.err").write_text("segfault in rank 3\n")

    with (
        patch(
            "hpcjm_lib.jm.slurm.run_command",
            return_value=ExecResult("Submitted batch job 77\n", "", 3),
        ) as run,
        pytest.raises(JMExecutionError, match="exit code 3") as exc_info,
    ):
        slurm.submit(job, sys_cfg)

    assert run.call_args.kwargs["check"] is False
    assert job.id == 77
    assert exc_info.value.stdout == "step 1\n"
    assert exc_info.value.stderr == "segfault in rank 3\n"
    assert exc_info.value.returncode == 3


def test_submit_blocking_failed_job_without_output_files(slurm, sys_cfg):
    job = _job()

    with (
        patch(
            "hpcjm_lib.jm.slurm.run_command",
            return_value=ExecResult("Submitted batch job 77\n", "", 1),
        ),
        pytest.raises(JMExecutionError, match="Job '77' failed") as exc_info,
    ):
        slurm.submit(job, sys_cfg)

    assert job.id == 77
    assert exc_info.value.stdout == ""
    assert exc_info.value.stderr == ""


def test_submit_rejected_by_sbatch(slurm, sys_cfg):
    job = _job(non_blocking=True)
    rejected = ExecResult("", "sbatch: error: invalid partition\n", 1)

    with (
        patch("hpcjm_lib.jm.slurm.run_command", return_value=rejected),
        pytest.raises(JMExecutionError, match="invalid partition") as exc_info,
    ):
        slurm.submit(job, sys_cfg)

    assert job.id is None
    assert exc_info.value.returncode == 1


def test_launcher_note_contains_output_of_failed_job(slurm, sys_cfg):
    job = _job()
    (sys_cfg.scratch_dir / "bench.err").write_text("segfault in rank 3\n")

    with patch(
        "hpcjm_lib.jm.slurm.run_command",
        return_value=ExecResult("Submitted batch job 77\n", "", 3),
    ):
        verdict, result = launch(job, None, slurm, sys_cfg)

    assert not verdict.passed
    assert "segfault in rank 3" in verdict.note
    assert result.returncode == 3
    assert job.id == 77


def test_relative_scratch_with_run_dir(slurm, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "scratch").mkdir()
    run_dir = tmp_path / "rundir"
    run_dir.mkdir()
    sys_cfg = SystemConfig(scratch_dir=Path("scratch"))
    job = _job(run_dir=run_dir)

    def sbatch(cmd, check=True):
        # the scheduler writes output files relative to its working directory
        assert cmd.exec_dir == run_dir
        for line in Path(cmd.args[-1]).read_text().splitlines():
            for option in ("--output=", "--error="):
                if line.startswith(f"#SBATCH {option}"):
                    (cmd.exec_dir / line.split("=", 1)[1]).write_text("done\n")
        return ACK

    with patch("hpcjm_lib.jm.slurm.run_command", side_effect=sbatch):
        result = slurm.submit(job, sys_cfg)

    assert job.batch_script.is_absolute()
    assert f"--output={tmp_path / 'scratch' / 'bench.out'}" in job.batch_script.read_text()
    assert result == ExecResult("done\n", "done\n", 0)
    assert job.getOutput(sys_cfg) == "done\n"
