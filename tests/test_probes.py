#!/usr/bin/env python3
# test_probes.py - HOLFY27 HostConfig Reachability Probe Unit Tests
# Version 1.0 - October 2026
# Author - HOL Core Team

import pytest
import os
import sys
import socket
import subprocess
from unittest.mock import MagicMock, patch

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rollout.probes import (
    CompositeProbe,
    PingProbe,
    TcpPortProbe,
    host_part,
    probe_for_setting,
)


class TestHostPart:
    """Test address normalization for probes"""

    @pytest.mark.parametrize('address,expected', [
        ('10.1.10.1', '10.1.10.1'),
        ('ntp.site-a.vcf.lab', 'ntp.site-a.vcf.lab'),
        ('udp://10.1.10.5:514', '10.1.10.5'),
        ('ssl://syslog.site-a.vcf.lab:1514', 'syslog.site-a.vcf.lab'),
        ('10.1.10.5:514', '10.1.10.5'),
        ('[fd00::1]:514', 'fd00::1'),
        ('fd00::1', 'fd00::1'),
    ])
    def test_host_part(self, address, expected):
        assert host_part(address) == expected


class TestPingProbe:
    """Test PingProbe with subprocess mocked"""

    def test_reachable(self):
        with patch('rollout.probes.subprocess.run') as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            assert PingProbe(timeout=2).probe('10.1.10.1') is True

            cmd = mock_run.call_args[0][0]
            assert cmd == ['ping', '-c', '1', '-W', '2', '10.1.10.1']

    def test_unreachable(self):
        with patch('rollout.probes.subprocess.run') as mock_run:
            mock_run.return_value = MagicMock(returncode=1)
            assert PingProbe().probe('10.1.10.99') is False

    def test_timeout(self):
        with patch('rollout.probes.subprocess.run',
                   side_effect=subprocess.TimeoutExpired('ping', 5)):
            assert PingProbe().probe('10.1.10.99') is False

    def test_missing_ping_binary(self):
        with patch('rollout.probes.subprocess.run', side_effect=FileNotFoundError('ping')):
            assert PingProbe().probe('10.1.10.1') is False

    def test_sub_second_timeout_rounds_up(self):
        with patch('rollout.probes.subprocess.run') as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            PingProbe(timeout=0.5).probe('10.1.10.1')
            assert mock_run.call_args[0][0][4] == '1'


class TestTcpPortProbe:
    """Test TcpPortProbe with socket mocked"""

    def test_open_port(self):
        with patch('rollout.probes.socket.create_connection') as mock_conn:
            assert TcpPortProbe(53, timeout=1).probe('10.1.10.129') is True
            mock_conn.assert_called_once_with(('10.1.10.129', 53), timeout=1)

    @pytest.mark.parametrize('error', [
        socket.timeout('timed out'),
        socket.gaierror('no such host'),
        ConnectionRefusedError('refused'),
    ])
    def test_closed_port(self, error):
        with patch('rollout.probes.socket.create_connection', side_effect=error):
            assert TcpPortProbe(53).probe('10.1.10.129') is False

    def test_strips_scheme(self):
        with patch('rollout.probes.socket.create_connection') as mock_conn:
            TcpPortProbe(514).probe('tcp://10.1.10.5:514')
            assert mock_conn.call_args[0][0] == ('10.1.10.5', 514)


class TestCompositeProbe:
    """Test CompositeProbe any/all semantics"""

    def make_probe(self, result):
        probe = MagicMock()
        probe.probe.return_value = result
        return probe

    def test_any_stops_at_first_success(self):
        first, second = self.make_probe(True), self.make_probe(False)
        assert CompositeProbe([first, second]).probe('a') is True
        second.probe.assert_not_called()

    def test_any_all_fail(self):
        assert CompositeProbe([self.make_probe(False), self.make_probe(False)]).probe('a') is False

    def test_require_all(self):
        probe = CompositeProbe([self.make_probe(True), self.make_probe(False)], require_all=True)
        assert probe.probe('a') is False

    def test_needs_probes(self):
        with pytest.raises(ValueError):
            CompositeProbe([])


class TestProbeForSetting:
    """Test default probe selection"""

    def test_ntp_uses_ping(self):
        assert isinstance(probe_for_setting('ntp'), PingProbe)

    def test_dns_adds_tcp_53(self):
        probe = probe_for_setting('dns', timeout=2)
        assert isinstance(probe, CompositeProbe)
        assert probe.probes[1].port == 53
        assert probe.probes[1].timeout == 2

    def test_syslog_adds_tcp_514(self):
        probe = probe_for_setting('syslog')
        assert probe.probes[1].port == 514
