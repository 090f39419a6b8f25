"""Tests for export enumeration and the showmount output parser."""

from unittest.mock import Mock, patch

from nfs_automount.modules.export_lister import ExportLister, parse_showmount_output
from nfs_automount.modules.subprocess_helper import SubprocessResult
from tests.fixtures.tool_outputs import (
    SHOWMOUNT_EMPTY,
    SHOWMOUNT_NESTED,
    SHOWMOUNT_ROOT_AND_DATA,
    SHOWMOUNT_RPC_ERROR,
)


def _showmount(stdout="", returncode=0, stderr=""):
    return SubprocessResult(
        command=["showmount"], returncode=returncode, stdout=stdout, stderr=stderr
    )


class TestParseShowmountOutput:
    def test_skips_header_and_keeps_root(self):
        assert parse_showmount_output(SHOWMOUNT_ROOT_AND_DATA) == ["/", "/data"]

    def test_nested_paths_and_blank_lines(self):
        assert parse_showmount_output(SHOWMOUNT_NESTED) == ["/exports/home", "/exports/scratch"]

    def test_header_only(self):
        assert parse_showmount_output(SHOWMOUNT_EMPTY) == []

    def test_non_path_lines_ignored(self):
        output = "Export list for 10.0.0.4:\nwarning: something\n/data *\n"
        assert parse_showmount_output(output) == ["/data"]

    def test_empty(self):
        assert parse_showmount_output("") == []


class TestListExports:
    @patch("nfs_automount.modules.export_lister.safe_run")
    def test_lists_exports(self, mock_run):
        mock_run.return_value = _showmount(SHOWMOUNT_ROOT_AND_DATA)

        shares = ExportLister.list_exports("10.0.0.4")

        assert shares == ["/", "/data"]
        assert mock_run.call_args.args[0] == ["showmount", "-e", "10.0.0.4"]

    @patch("nfs_automount.modules.export_lister.safe_run")
    def test_unreachable_host_returns_empty(self, mock_run):
        mock_run.return_value = _showmount(returncode=1, stderr=SHOWMOUNT_RPC_ERROR)

        assert ExportLister.list_exports("10.0.0.9") == []

    @patch("nfs_automount.modules.export_lister.safe_run")
    def test_settle_delay_before_query(self, mock_run):
        mock_run.return_value = _showmount(SHOWMOUNT_NESTED)
        sleep = Mock()

        ExportLister.list_exports("10.0.0.5", settle_seconds=10, sleep=sleep)

        sleep.assert_called_once_with(10)

    @patch("nfs_automount.modules.export_lister.safe_run")
    def test_no_settle_delay_by_default(self, mock_run):
        mock_run.return_value = _showmount(SHOWMOUNT_NESTED)
        sleep = Mock()

        ExportLister.list_exports("10.0.0.5", sleep=sleep)

        sleep.assert_not_called()
