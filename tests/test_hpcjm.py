# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from click.testing import CliRunner

from hpcjm_lib import __version__, cli


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert result.output == f"{__version__}\n"


def test_without_command_prints_help():
    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 0
    for command in ("run", "jobmgr", "mpi-detect"):
        assert command in result.output


def test_subcommand_help():
    result = CliRunner().invoke(cli, ["mpi-detect", "--help"])

    assert result.exit_code == 0
    assert "--dir" in result.output
