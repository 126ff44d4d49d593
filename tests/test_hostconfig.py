#!/usr/bin/env python3
# test_hostconfig.py - HOLFY27 HostConfig Orchestrator Unit Tests
# Version 1.0 - October 2026
# Author - HOL Core Team

import pytest
import os
import sys
import json
from unittest.mock import patch

from pyVmomi import vim

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import hostconfig
import hostconfig_config as config
from conftest import FakeProbe
from hostconfig import HostConfig, parse_args
from rollout.base import ClusterWide, SingleHost
from rollout.host_ops import set_lockdown, set_service_state


class TestParseArgs:
    """Test command-line parsing"""

    def test_rollout_command(self):
        args = parse_args(['ntp', '--cluster', 'cluster-mgmt-01a', '--servers', '10.1.10.1,10.1.10.2'])
        assert args.command == 'ntp'
        assert args.cluster == 'cluster-mgmt-01a'
        assert args.host is None
        assert args.servers == '10.1.10.1,10.1.10.2'
        assert args.workers == 0

    def test_syslog_options(self):
        args = parse_args(['syslog', '--host', 'esx-01a', '--protocol', 'tcp', '--port', '1514'])
        assert args.protocol == 'tcp'
        assert args.port == 1514

    def test_syslog_defaults(self):
        args = parse_args(['syslog', '--host', 'esx-01a'])
        assert args.protocol == config.SYSLOG_DEFAULT_PROTOCOL
        assert args.port == config.SYSLOG_DEFAULT_PORT

    def test_ssh_disable(self):
        args = parse_args(['ssh', '--host', 'esx-01a', '--disable', '--policy', 'off'])
        assert args.enable is False
        assert args.policy == 'off'

    def test_lockdown_default_mode(self):
        args = parse_args(['lockdown', '--cluster', 'c', '--enable'])
        assert args.enable is True
        assert args.mode == 'lockdownNormal'

    def test_advanced(self):
        args = parse_args(['advanced', '--host', 'h', '--key', 'Foo.Bar', '--value', '1', '--dry-run'])
        assert (args.key, args.value, args.dry_run) == ('Foo.Bar', '1', True)

    @pytest.mark.parametrize('argv', [
        ['ntp'],
        ['ntp', '--host', 'a', '--cluster', 'b'],
        ['ssh', '--host', 'a'],
        ['restart', '--host', 'a', '--policy', 'on'],
        ['bogus', '--host', 'a'],
    ])
    def test_invalid(self, argv):
        with pytest.raises(SystemExit):
            parse_args(argv)


class TestHostConfig:
    """Test the orchestrator against mocked sessions"""

    def make(self, argv, temp_config_ini, mock_session, inventory):
        args = parse_args(argv + ['--config', temp_config_ini])
        return HostConfig(args, session=mock_session, resolver=inventory)

    def test_settings_and_workers(self, temp_config_ini, mock_session, inventory):
        app = self.make(['uptime', '--host', 'esx-99a.site-a.vcf.lab'],
                        temp_config_ini, mock_session, inventory)
        assert app.workers == 4
        assert app.connected_here is False
        assert app.get_scope() == SingleHost('esx-99a.site-a.vcf.lab')

    def test_workers_flag_overrides_config(self, temp_config_ini, mock_session, inventory):
        app = self.make(['uptime', '--cluster', 'cluster-mgmt-01a', '--workers', '2'],
                        temp_config_ini, mock_session, inventory)
        assert app.workers == 2
        assert app.get_scope() == ClusterWide('cluster-mgmt-01a')

    def test_ntp_rollout_success(self, temp_config_ini, mock_session, inventory, capsys):
        app = self.make(['ntp', '--cluster', 'cluster-mgmt-01a'], temp_config_ini, mock_session, inventory)

        with patch('hostconfig.probe_for_setting', return_value=FakeProbe()):
            assert app.run() == 0

        for name in ('esx-01a.site-a.vcf.lab', 'esx-02a.site-a.vcf.lab'):
            date_time_system = mock_session.hosts[name].configManager.dateTimeSystem
            new_config = date_time_system.UpdateDateTimeConfig.call_args.kwargs['config']
            assert list(new_config.ntpConfig.server) == ['10.1.10.1', '10.1.10.2']

        mock_session.disconnect.assert_not_called()
        assert 'NTP rollout to cluster cluster-mgmt-01a' in capsys.readouterr().out

    def test_unreachable_servers_not_applied(self, temp_config_ini, mock_session, inventory):
        network_system = mock_session.get_host('esx-99a.site-a.vcf.lab').configManager.networkSystem
        network_system.dnsConfig = vim.host.DnsConfig(
            dhcp=False, hostName='esx-99a', domainName='site-a.vcf.lab', address=['192.168.1.1'])

        app = self.make(['dns', '--host', 'esx-99a.site-a.vcf.lab',
                         '--servers', '10.1.10.129,10.1.10.130,10.1.10.131'],
                        temp_config_ini, mock_session, inventory)

        with patch('hostconfig.probe_for_setting', return_value=FakeProbe({'10.1.10.130': False})):
            assert app.run() == 0

        network_system = mock_session.hosts['esx-99a.site-a.vcf.lab'].configManager.networkSystem
        new_config = network_system.UpdateDnsConfig.call_args.kwargs['config']
        assert list(new_config.address) == ['10.1.10.129', '10.1.10.131']

    def test_host_failure_exit_code(self, temp_config_ini, mock_session, inventory):
        failing = mock_session.get_host('esx-02a.site-a.vcf.lab')
        failing.configManager.dateTimeSystem.UpdateDateTimeConfig.side_effect = \
            vim.fault.HostConfigFault(msg='NTP configuration rejected')

        app = self.make(['ntp', '--cluster', 'cluster-mgmt-01a', '--json'],
                        temp_config_ini, mock_session, inventory)

        with patch('hostconfig.probe_for_setting', return_value=FakeProbe()):
            assert app.run() == 1

        first = mock_session.hosts['esx-01a.site-a.vcf.lab']
        first.configManager.dateTimeSystem.UpdateDateTimeConfig.assert_called_once()

    def test_unknown_cluster_exit_code(self, temp_config_ini, mock_session, inventory):
        probe = FakeProbe()
        app = self.make(['ntp', '--cluster', 'cluster-nope'], temp_config_ini, mock_session, inventory)

        with patch('hostconfig.probe_for_setting', return_value=probe):
            assert app.run() == 2
        assert probe.calls == []

    def test_no_servers_exit_code(self, temp_config_ini, mock_session, inventory):
        # syslog_servers is not set in the config file
        app = self.make(['syslog', '--host', 'esx-99a.site-a.vcf.lab'],
                        temp_config_ini, mock_session, inventory)

        with patch('hostconfig.probe_for_setting', return_value=FakeProbe()):
            assert app.run() == 2

    def test_uptime_action(self, temp_config_ini, mock_session, inventory, capsys):
        for name in ('esx-01a.site-a.vcf.lab', 'esx-02a.site-a.vcf.lab'):
            host = mock_session.get_host(name)
            host.summary.quickStats.uptime = 7200
            host.runtime.bootTime = None

        app = self.make(['uptime', '--cluster', 'cluster-mgmt-01a'], temp_config_ini, mock_session, inventory)
        assert app.run() == 0
        assert 'Up 0d 2h 0m' in capsys.readouterr().out

    def test_action_failure_exit_code(self, temp_config_ini, mock_session, inventory):
        mock_session.get_host('esx-99a.site-a.vcf.lab').runtime.inMaintenanceMode = False
        app = self.make(['restart', '--host', 'esx-99a.site-a.vcf.lab'], temp_config_ini, mock_session, inventory)
        assert app.run() == 1

    def test_get_operation(self, temp_config_ini, mock_session, inventory):
        app = self.make(['ssh', '--host', 'h', '--enable', '--policy', 'on'],
                        temp_config_ini, mock_session, inventory)
        operation, kwargs = app.get_operation('ssh')
        assert operation is set_service_state
        assert kwargs['service_key'] == 'TSM-SSH'
        assert kwargs['running'] is True

        app = self.make(['lockdown', '--host', 'h', '--disable'], temp_config_ini, mock_session, inventory)
        operation, kwargs = app.get_operation('lockdown')
        assert operation is set_lockdown
        assert kwargs['enabled'] is False

    def test_reports_written(self, temp_config_ini, mock_session, inventory, temp_dir, monkeypatch):
        monkeypatch.setattr(config, 'OUTPUT_DIR', temp_dir)
        html_path = os.path.join(temp_dir, 'lockdown.html')
        mock_session.get_host('esx-99a.site-a.vcf.lab').configManager.hostAccessManager.lockdownMode = \
            'lockdownDisabled'

        app = self.make(['lockdown', '--host', 'esx-99a.site-a.vcf.lab', '--enable',
                         '--html', html_path, '--save-json'],
                        temp_config_ini, mock_session, inventory)
        assert app.run() == 0

        assert os.path.isfile(html_path)
        with open(os.path.join(temp_dir, 'hostconfig-lockdown.json')) as f:
            data = json.load(f)
        assert data[0]['status'] == 'PASS'

    def test_no_vcenter_exit_code(self, temp_dir):
        args = parse_args(['uptime', '--host', 'h', '--config', os.path.join(temp_dir, 'missing.ini')])
        assert HostConfig(args).run() == 2

    def test_connection_failure_exit_code(self, temp_config_ini):
        args = parse_args(['uptime', '--host', 'h', '--config', temp_config_ini])
        with patch('rollout.session.connect.SmartConnect', side_effect=OSError('refused')), \
                patch.object(hostconfig.config, 'get_password', return_value='pw'):
            assert HostConfig(args).run() == 2
