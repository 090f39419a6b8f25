"""Tests for host discovery and the nmap grepable output parser."""

from unittest.mock import patch

import pytest

from nfs_automount.exceptions import ValidationError
from nfs_automount.modules.host_scanner import HostScanner, parse_grepable_output
from nfs_automount.modules.subprocess_helper import SubprocessResult
from tests.fixtures.tool_outputs import NMAP_MIXED_PORTS, NMAP_NO_HOSTS, NMAP_TWO_HOSTS


class TestParseGrepableOutput:
    def test_two_hosts_in_scanner_order(self):
        assert parse_grepable_output(NMAP_TWO_HOSTS, 2049) == ["10.0.0.4", "10.0.0.5"]

    def test_no_hosts(self):
        assert parse_grepable_output(NMAP_NO_HOSTS, 2049) == []

    def test_only_open_state_of_exact_port_counts(self):
        # 10.0.0.7 filtered, 10.0.0.8 has 12049 open, 10.0.0.9 closed
        assert parse_grepable_output(NMAP_MIXED_PORTS, 2049) == ["10.0.0.6"]

    def test_other_port(self):
        assert parse_grepable_output(NMAP_MIXED_PORTS, 111) == ["10.0.0.6"]

    def test_status_lines_alone_do_not_count(self):
        assert parse_grepable_output("Host: 10.0.0.4 ()\tStatus: Up\n", 2049) == []

    def test_empty_and_none(self):
        assert parse_grepable_output("", 2049) == []
        assert parse_grepable_output(None, 2049) == []

    def test_unparsable_address_is_skipped(self):
        output = "Host: not-an-ip ()\tPorts: 2049/open/tcp//nfs///\n"
        assert parse_grepable_output(output, 2049) == []


class TestHostScanner:
    def test_build_command(self):
        assert HostScanner.build_command("10.0.0.0/28", 2049) == [
            "nmap",
            "-p",
            "2049",
            "--open",
            "-oG",
            "-",
            "10.0.0.0/28",
        ]

    @patch("nfs_automount.modules.host_scanner.safe_run")
    def test_scan_returns_open_hosts(self, mock_run):
        mock_run.return_value = SubprocessResult(
            command=["nmap"], returncode=0, stdout=NMAP_TWO_HOSTS, stderr=""
        )

        hosts = HostScanner.scan("10.0.0.0/28", 2049)

        assert hosts == ["10.0.0.4", "10.0.0.5"]
        assert mock_run.call_args.args[0][-1] == "10.0.0.0/28"
        assert mock_run.call_args.kwargs["timeout"] == HostScanner.SCAN_TIMEOUT

    @patch("nfs_automount.modules.host_scanner.safe_run")
    def test_scanner_failure_means_no_hosts(self, mock_run):
        mock_run.return_value = SubprocessResult(
            command=["nmap"], returncode=1, stdout="", stderr="Failed to resolve"
        )

        assert HostScanner.scan("10.0.0.0/28", 2049) == []

    @patch("nfs_automount.modules.host_scanner.safe_run")
    def test_scanner_timeout_means_no_hosts(self, mock_run):
        mock_run.return_value = SubprocessResult(
            command=["nmap"], returncode=-15, stdout=NMAP_TWO_HOSTS, stderr="", timed_out=True
        )

        assert HostScanner.scan("10.0.0.0/28", 2049, timeout=5) == []
        assert mock_run.call_args.kwargs["timeout"] == 5

    @patch("nfs_automount.modules.host_scanner.safe_run")
    def test_invalid_subnet_is_configuration_error(self, mock_run):
        with pytest.raises(ValidationError):
            HostScanner.scan("10.0.0.0", 2049)
        mock_run.assert_not_called()

    @patch("nfs_automount.modules.host_scanner.safe_run")
    def test_invalid_port_is_configuration_error(self, mock_run):
        with pytest.raises(ValidationError):
            HostScanner.scan("10.0.0.0/28", 70000)
        mock_run.assert_not_called()
