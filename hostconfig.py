#!/usr/bin/env python3
# hostconfig.py - HOLFY27 HostConfig Main Orchestrator
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Main entry point for ESXi host configuration rollouts and reports.

"""
HostConfig - HOLFY27 ESXi Host Configuration Tool

Pushes configuration to one ESXi host or every host of a cluster and reports
per-host results.

Usage:
    python3 hostconfig.py <command> (--host NAME | --cluster NAME) [options]

Commands:
    ntp        Set NTP servers (unreachable servers are skipped)
    dns        Set DNS servers (unreachable servers are skipped)
    syslog     Set syslog targets (unreachable targets are skipped)
    ssh        Enable or disable the SSH service
    lockdown   Enter or exit lockdown mode
    advanced   Set an advanced setting
    restart    Reboot hosts
    uptime     Report host uptime
    adapters   Report physical and VMkernel network adapters

Examples:
    python3 hostconfig.py ntp --cluster cluster-mgmt-01a --servers 10.1.10.1,pool.ntp.org
    python3 hostconfig.py ssh --host esx-01a.site-a.vcf.lab --enable --policy on
    python3 hostconfig.py uptime --cluster cluster-mgmt-01a

Exit codes:
    0  all hosts succeeded
    1  one or more hosts failed
    2  bad input, unknown host/cluster or connection failure
"""

import sys
import os
import argparse
import datetime
import logging

# Add parent directory for local imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import hostconfig_config as config
import hostconfig_report as report_writer

from rollout.base import (
    ClusterWide,
    InvalidInputError,
    ScopeResolutionError,
    SessionError,
    SingleHost,
)
from rollout.host_config import CLIENTS, SyslogTargetClient
from rollout.host_ops import (
    get_network_adapters,
    get_uptime,
    restart_host,
    run_on_scope,
    set_advanced_setting,
    set_lockdown,
    set_service_state,
)
from rollout.planner import EndpointRolloutPlanner
from rollout.probes import probe_for_setting
from rollout.resolver import VsphereClusterResolver
from rollout.session import VsphereSession

logger = logging.getLogger(__name__)

ROLLOUT_COMMANDS = ('ntp', 'dns', 'syslog')
ACTION_COMMANDS = ('ssh', 'lockdown', 'advanced', 'restart', 'uptime', 'adapters')


#==============================================================================
# MAIN ORCHESTRATOR
#==============================================================================

class HostConfig:
    """
    Main HostConfig orchestrator class.

    Connects to vCenter, runs one command against the requested scope and
    writes the reports.
    """

    def __init__(self, args, session=None, resolver=None):
        """
        Initialize HostConfig with command-line arguments.

        Args:
            args: Parsed argparse arguments
            session: Pre-connected VsphereSession (skips connecting)
            resolver: Scope resolver (defaults to one over the session)
        """
        self.args = args
        self.verbose = args.verbose
        self.settings = config.load_config(args.config)
        self.start_time = datetime.datetime.now()

        self.connected_here = session is None
        self.session = session if session is not None else VsphereSession()
        self.resolver = resolver if resolver is not None else VsphereClusterResolver(self.session)

        workers = args.workers if args.workers else self.settings['workers']
        self.workers = config.clamp_workers(workers)

    def log(self, message: str, level: str = 'info'):
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (debug, info, warning, error)
        """
        if self.verbose or level != 'debug':
            getattr(logger, level)(message)

    def initialize(self) -> bool:
        """
        Connect to vCenter.

        Returns:
            True if initialization succeeded
        """
        if not self.connected_here:
            return True

        vcenter = self.args.vcenter or self.settings['vcenter']
        user = self.args.user or self.settings['user']
        if not vcenter:
            self.log('No vCenter given (--vcenter or [VCENTER] host in config.ini)', 'error')
            return False

        password = os.environ.get('HOSTCONFIG_PASSWORD') or config.get_password()
        try:
            self.session.connect(vcenter, user, password)
        except SessionError as e:
            self.log(str(e), 'error')
            return False
        return True

    def get_scope(self):
        """Build the rollout scope from --host / --cluster"""
        if self.args.host:
            return SingleHost(self.args.host)
        return ClusterWide(self.args.cluster)

    #--------------------------------------------------------------------------
    # Endpoint rollouts
    #--------------------------------------------------------------------------

    def build_client(self, setting: str):
        client_class = CLIENTS[setting]
        if client_class is SyslogTargetClient:
            return SyslogTargetClient(
                self.session,
                dry_run=self.args.dry_run,
                protocol=self.args.protocol,
                port=self.args.port
            )
        return client_class(self.session, dry_run=self.args.dry_run)

    def run_rollout(self, setting: str) -> int:
        """Probe the requested servers and apply them to every host in scope"""
        raw = self.args.servers or self.settings[f'{setting}_servers']
        candidates = config.parse_server_list(raw)

        planner = EndpointRolloutPlanner(
            probe=probe_for_setting(setting, timeout=self.settings['probe_timeout']),
            resolver=self.resolver,
            client=self.build_client(setting),
            workers=self.workers,
            probe_timeout=self.settings['probe_timeout'] * 3,
            apply_timeout=self.settings['apply_timeout'],
            setting=setting
        )
        rollout_report = planner.rollout(candidates, self.get_scope())

        print(report_writer.format_rollout_table(rollout_report))
        if self.args.json:
            print(rollout_report.to_json())
        self.write_reports(setting, rollout_report.to_json(),
                           lambda path: report_writer.generate_rollout_html(rollout_report, path))

        return 0 if all(o.success for o in rollout_report.outcomes) else 1

    #--------------------------------------------------------------------------
    # Host operations
    #--------------------------------------------------------------------------

    def get_operation(self, command: str):
        """Map a command to (operation, kwargs)"""
        dry_run = self.args.dry_run
        if command == 'ssh':
            return set_service_state, {
                'service_key': config.SSH_SERVICE_NAME,
                'running': self.args.enable,
                'policy': self.args.policy,
                'dry_run': dry_run,
            }
        if command == 'lockdown':
            return set_lockdown, {'enabled': self.args.enable, 'mode': self.args.mode, 'dry_run': dry_run}
        if command == 'advanced':
            return set_advanced_setting, {'key': self.args.key, 'value': self.args.value, 'dry_run': dry_run}
        if command == 'restart':
            return restart_host, {'force': self.args.force, 'wait': self.args.wait, 'dry_run': dry_run}
        if command == 'uptime':
            return get_uptime, {}
        if command == 'adapters':
            return get_network_adapters, {}
        raise ValueError(f'Unknown command: {command}')

    def run_action(self, command: str) -> int:
        """Run a host operation on every host in scope"""
        operation, kwargs = self.get_operation(command)
        timeout = config.RESTART_TASK_TIMEOUT if command == 'restart' else self.settings['apply_timeout']

        results = run_on_scope(
            self.session,
            self.resolver,
            self.get_scope(),
            operation,
            workers=self.workers,
            timeout=timeout,
            **kwargs
        )

        if command == 'uptime':
            print(report_writer.format_uptime_table(results))
        elif command == 'adapters':
            print(report_writer.format_adapter_table(results))
        else:
            print(report_writer.format_action_table(results))

        content = report_writer.actions_to_json(results)
        if self.args.json:
            print(content)
        self.write_reports(command, content,
                           lambda path: report_writer.generate_actions_html(
                               f'HostConfig {command}', results, path))

        return 1 if any(r.is_fail() for r in results) else 0

    #--------------------------------------------------------------------------
    # Reports and run loop
    #--------------------------------------------------------------------------

    def write_reports(self, name: str, json_content: str, html_writer):
        """Write the JSON report and, if requested, the HTML report"""
        if self.args.html:
            try:
                html_writer(self.args.html)
                self.log(f'HTML report written to: {self.args.html}', 'info')
            except OSError as e:
                self.log(f'Failed to write HTML report: {e}', 'error')

        if self.args.save_json:
            json_path = config.get_output_path(name, 'json')
            try:
                report_writer.generate_json_report(json_content, json_path)
                self.log(f'JSON report written to: {json_path}', 'info')
            except OSError as e:
                self.log(f'Failed to write JSON report: {e}', 'error')

    def run(self) -> int:
        """
        Run the selected command.

        Returns:
            Exit code (0 success, 1 host failures, 2 input/connection errors)
        """
        command = self.args.command
        self.log('=' * 60, 'info')
        self.log(f'HostConfig - {command}', 'info')
        self.log('=' * 60, 'info')

        if not self.initialize():
            return 2

        try:
            if command in ROLLOUT_COMMANDS:
                exit_code = self.run_rollout(command)
            else:
                exit_code = self.run_action(command)
        except (InvalidInputError, ScopeResolutionError) as e:
            self.log(str(e), 'error')
            return 2
        finally:
            if self.connected_here:
                self.session.disconnect()

        elapsed = datetime.datetime.now() - self.start_time
        self.log(f'HostConfig {command} complete - {"OK" if exit_code == 0 else "FAILURES"}', 'info')
        self.log(f'Elapsed time: {elapsed}', 'info')
        return exit_code


#==============================================================================
# MAIN
#==============================================================================

def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per operation"""
    common = argparse.ArgumentParser(add_help=False)

    scope = common.add_mutually_exclusive_group(required=True)
    scope.add_argument('--host', metavar='NAME', help='Target a single ESXi host')
    scope.add_argument('--cluster', metavar='NAME', help='Target every host in a cluster')

    common.add_argument('--config', default=config.CONFIG_INI, help='Path to config.ini')
    common.add_argument('--vcenter', help='vCenter or ESXi hostname to connect to')
    common.add_argument('--user', help='Username for the connection')
    common.add_argument('--workers', type=int, default=0,
                        help='Hosts/probes handled concurrently (default 1)')
    common.add_argument('--dry-run', action='store_true', help='Show what would be done')
    common.add_argument('--json', action='store_true', help='Output results as JSON to stdout')
    common.add_argument('--save-json', action='store_true',
                        help=f'Write a JSON report under {config.OUTPUT_DIR}')
    common.add_argument('--html', metavar='FILE', help='Generate HTML report to specified file')
    common.add_argument('--verbose', '-v', action='store_true', help='Verbose output')

    parser = argparse.ArgumentParser(
        description='HOLFY27 HostConfig - ESXi Host Configuration Tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    sub = parser.add_subparsers(dest='command', required=True)

    for setting, label in (('ntp', 'NTP servers'), ('dns', 'DNS servers'), ('syslog', 'syslog targets')):
        p = sub.add_parser(setting, parents=[common], help=f'Set {label}')
        p.add_argument('--servers', default='',
                       help=f'Comma separated {label}, first is primary (default from config.ini)')
        if setting == 'syslog':
            p.add_argument('--protocol', default=config.SYSLOG_DEFAULT_PROTOCOL,
                           choices=('udp', 'tcp', 'ssl'))
            p.add_argument('--port', type=int, default=config.SYSLOG_DEFAULT_PORT)

    for name, label in (('ssh', 'the SSH service'), ('lockdown', 'lockdown mode')):
        p = sub.add_parser(name, parents=[common], help=f'Enable or disable {label}')
        toggle = p.add_mutually_exclusive_group(required=True)
        toggle.add_argument('--enable', dest='enable', action='store_true')
        toggle.add_argument('--disable', dest='enable', action='store_false')
        if name == 'ssh':
            p.add_argument('--policy', choices=config.SERVICE_POLICIES,
                           help='Startup policy (default: unchanged)')
        else:
            p.add_argument('--mode', choices=config.LOCKDOWN_MODES, default='lockdownNormal')

    p = sub.add_parser('advanced', parents=[common], help='Set an advanced setting')
    p.add_argument('--key', required=True, help='e.g. UserVars.ESXiShellInteractiveTimeOut')
    p.add_argument('--value', required=True)

    p = sub.add_parser('restart', parents=[common], help='Reboot hosts')
    p.add_argument('--force', action='store_true', help='Reboot hosts not in maintenance mode')
    p.add_argument('--wait', action='store_true', help='Wait for the reboot task')

    sub.add_parser('uptime', parents=[common], help='Report host uptime')
    sub.add_parser('adapters', parents=[common], help='Report network adapters')

    return parser


def parse_args(argv=None):
    """Parse command-line arguments"""
    return build_parser().parse_args(argv)


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    hostconfig = HostConfig(args)
    return hostconfig.run()


if __name__ == '__main__':
    sys.exit(main())
