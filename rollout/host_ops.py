# host_ops.py - HOLFY27 HostConfig Host Operations
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Simple per-host operations run across a host or cluster scope.

"""
Host Operations Module

Read-only reports:
- get_uptime: boot time and uptime
- get_network_adapters: physical NICs and VMkernel adapters

Configuration changes:
- set_service_state: start/stop a service (e.g. SSH) and set its policy
- set_lockdown: enter or exit lockdown mode
- set_advanced_setting: change an advanced option
- restart_host: reboot a host

run_on_scope() resolves a scope and runs one operation on every host,
continuing past failures, and returns one HostActionResult per host.
"""

import datetime
import logging
from typing import Any, Callable, List, Optional

from pyVim.task import WaitForTask
from pyVmomi import vim, vmodl

from .base import HostActionResult, ScopeResolutionError, dedupe_hosts
from .host_config import find_service
from .planner import run_ordered

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import hostconfig_config as config

logger = logging.getLogger(__name__)


#==============================================================================
# REPORTS
#==============================================================================

def format_uptime(seconds: int) -> str:
    """Format seconds as '3d 4h 12m'"""
    days, rem = divmod(int(seconds), 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    return f'{days}d {hours}h {minutes}m'


def get_uptime(host, **kwargs) -> HostActionResult:
    """
    Get uptime for an ESXi host.

    Args:
        host: ESXi host object (vim.HostSystem)

    Returns:
        HostActionResult with uptime details
    """
    uptime = host.summary.quickStats.uptime
    boot_time = host.runtime.bootTime

    if uptime is None:
        return HostActionResult(
            host=host.name,
            action='uptime',
            status='FAIL',
            message='Uptime not reported (host disconnected?)',
            details={'connection_state': str(host.runtime.connectionState)}
        )

    return HostActionResult(
        host=host.name,
        action='uptime',
        status='INFO',
        message=f'Up {format_uptime(uptime)}',
        details={
            'uptime_seconds': int(uptime),
            'boot_time': boot_time.isoformat() if boot_time else '',
        }
    )


def get_network_adapters(host, **kwargs) -> HostActionResult:
    """
    List physical NICs and VMkernel adapters of an ESXi host.

    Args:
        host: ESXi host object (vim.HostSystem)

    Returns:
        HostActionResult with adapter lists in details
    """
    network = host.config.network

    pnics = []
    for pnic in network.pnic or []:
        speed = pnic.linkSpeed.speedMb if pnic.linkSpeed else None
        pnics.append({
            'device': pnic.device,
            'mac': pnic.mac,
            'speed_mb': speed,
            'link': 'up' if speed else 'down',
            'driver': pnic.driver,
        })

    vnics = []
    for vnic in network.vnic or []:
        vnics.append({
            'device': vnic.device,
            'ip': vnic.spec.ip.ipAddress,
            'netmask': vnic.spec.ip.subnetMask,
            'dhcp': bool(vnic.spec.ip.dhcp),
            'mac': vnic.spec.mac,
            'portgroup': vnic.portgroup or '',
            'mtu': vnic.spec.mtu,
        })

    down = [p['device'] for p in pnics if p['link'] == 'down']
    message = f'{len(pnics)} physical, {len(vnics)} VMkernel adapter(s)'
    if down:
        message += f'; link down: {", ".join(down)}'

    return HostActionResult(
        host=host.name,
        action='adapters',
        status='INFO',
        message=message,
        details={'pnics': pnics, 'vnics': vnics}
    )


#==============================================================================
# CONFIGURATION CHANGES
#==============================================================================

def set_service_state(host, service_key: str = config.SSH_SERVICE_NAME,
                      running: bool = True, policy: Optional[str] = None,
                      dry_run: bool = False, **kwargs) -> HostActionResult:
    """
    Start or stop a service on an ESXi host and optionally set its policy.

    Args:
        host: ESXi host object (vim.HostSystem)
        service_key: Service key (default TSM-SSH)
        running: True to start, False to stop
        policy: Startup policy ('on', 'off', 'automatic') or None to leave as is
        dry_run: Show what would be done without making changes

    Returns:
        HostActionResult
    """
    action = f'service {service_key}'
    if policy is not None and policy not in config.SERVICE_POLICIES:
        return HostActionResult(host.name, action, 'FAIL', f'Invalid policy: {policy}')

    service = find_service(host, service_key)
    if service is None:
        return HostActionResult(host.name, action, 'FAIL', 'Service not found')

    service_system = host.configManager.serviceSystem
    changes = []

    if bool(service.running) != running:
        changes.append('start' if running else 'stop')
        if not dry_run:
            if running:
                service_system.StartService(id=service_key)
            else:
                service_system.StopService(id=service_key)

    if policy is not None and service.policy != policy:
        changes.append(f'policy {service.policy} -> {policy}')
        if not dry_run:
            service_system.UpdateServicePolicy(id=service_key, policy=policy)

    details = {'running': running, 'policy': policy or service.policy}
    if not changes:
        return HostActionResult(host.name, action, 'PASS', 'Already in requested state', details)
    if dry_run:
        return HostActionResult(host.name, action, 'SKIPPED', f'Would {", ".join(changes)}', details)
    return HostActionResult(host.name, action, 'PASS', f'Done: {", ".join(changes)}', details)


def set_lockdown(host, enabled: bool = True, mode: str = 'lockdownNormal',
                 dry_run: bool = False, **kwargs) -> HostActionResult:
    """
    Enter or exit lockdown mode.

    Args:
        host: ESXi host object (vim.HostSystem)
        enabled: True to enter lockdown, False to exit
        mode: 'lockdownNormal' or 'lockdownStrict' when entering
        dry_run: Show what would be done without making changes

    Returns:
        HostActionResult
    """
    if mode not in config.LOCKDOWN_MODES:
        return HostActionResult(host.name, 'lockdown', 'FAIL', f'Invalid lockdown mode: {mode}')

    access_manager = host.configManager.hostAccessManager
    current = str(access_manager.lockdownMode)
    target = mode if enabled else 'lockdownDisabled'
    details = {'previous': current, 'mode': target}

    if current == target:
        return HostActionResult(host.name, 'lockdown', 'PASS', f'Already {target}', details)
    if dry_run:
        return HostActionResult(host.name, 'lockdown', 'SKIPPED',
                                f'Would change {current} -> {target}', details)

    access_manager.ChangeLockdownMode(mode=target)
    return HostActionResult(host.name, 'lockdown', 'PASS', f'Changed {current} -> {target}', details)


def coerce_option_value(current: Any, value: str) -> Any:
    """
    Convert a string to the type of an option's current value.

    pyVmomi rejects values whose type differs from the option definition, so
    integers keep the exact int subclass (e.g. vmodl long) the host returned.
    """
    if isinstance(current, bool):
        lowered = str(value).strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
        raise ValueError(f'Not a boolean: {value}')
    if isinstance(current, int):
        return type(current)(int(value))
    return str(value)


def set_advanced_setting(host, key: str = '', value: str = '',
                         dry_run: bool = False, **kwargs) -> HostActionResult:
    """
    Set an advanced option on an ESXi host.

    Args:
        host: ESXi host object (vim.HostSystem)
        key: Option key, e.g. 'UserVars.ESXiShellInteractiveTimeOut'
        value: New value as a string, converted to the option's type
        dry_run: Show what would be done without making changes

    Returns:
        HostActionResult
    """
    action = f'advanced {key}'
    option_manager = host.configManager.advancedOption

    try:
        current_options = option_manager.QueryOptions(name=key)
    except vim.fault.InvalidName:
        return HostActionResult(host.name, action, 'FAIL', 'Unknown advanced setting')

    current = current_options[0].value if current_options else None
    try:
        new_value = coerce_option_value(current, value)
    except ValueError as e:
        return HostActionResult(host.name, action, 'FAIL', str(e))

    details = {'previous': current, 'value': new_value}
    if current == new_value:
        return HostActionResult(host.name, action, 'PASS', f'Already {new_value}', details)
    if dry_run:
        return HostActionResult(host.name, action, 'SKIPPED',
                                f'Would change {current} -> {new_value}', details)

    option = vim.option.OptionValue(key=key, value=new_value)
    option_manager.UpdateOptions(changedValue=[option])
    return HostActionResult(host.name, action, 'PASS', f'Changed {current} -> {new_value}', details)


def restart_host(host, force: bool = False, wait: bool = False,
                 dry_run: bool = False, **kwargs) -> HostActionResult:
    """
    Reboot an ESXi host.

    Hosts not in maintenance mode are refused unless force is set.

    Args:
        host: ESXi host object (vim.HostSystem)
        force: Reboot even when not in maintenance mode
        wait: Wait for the reboot task to complete
        dry_run: Show what would be done without making changes

    Returns:
        HostActionResult
    """
    in_mm = bool(host.runtime.inMaintenanceMode)
    details = {'maintenance_mode': in_mm, 'force': force}

    if not in_mm and not force:
        return HostActionResult(host.name, 'restart', 'FAIL',
                                'Not in maintenance mode (use --force)', details)
    if dry_run:
        return HostActionResult(host.name, 'restart', 'SKIPPED', 'Would reboot', details)

    task = host.RebootHost_Task(force=force)
    if wait:
        WaitForTask(task)
        return HostActionResult(host.name, 'restart', 'PASS', 'Reboot task completed', details)
    return HostActionResult(host.name, 'restart', 'PASS', 'Reboot initiated', details)


#==============================================================================
# SCOPE FAN-OUT
#==============================================================================

def run_on_scope(session, resolver, scope, operation: Callable, workers: int = 1,
                 timeout: Optional[float] = None, **kwargs) -> List[HostActionResult]:
    """
    Run one host operation on every host in scope.

    Args:
        session: VsphereSession used to look up host objects
        resolver: Object with resolve(scope) -> list of host names
        scope: SingleHost or ClusterWide
        operation: Function taking (host, **kwargs) -> HostActionResult
        workers: Concurrent hosts (1 = sequential)
        timeout: Per-host timeout in seconds
        kwargs: Passed to the operation

    Returns:
        One HostActionResult per host, in resolution order

    Raises:
        ScopeResolutionError: scope does not resolve to any host
    """
    hosts = dedupe_hosts(resolver.resolve(scope))
    if not hosts:
        raise ScopeResolutionError(f'{scope.describe()} resolved to no hosts')

    action = getattr(operation, '__name__', 'operation')
    logger.info(f'{action}: running on {len(hosts)} host(s) in {scope.describe()}')

    def run_one(host_name):
        host = session.get_host(host_name)
        if host is None:
            return HostActionResult(host_name, action, 'FAIL', 'Host not found in connected sessions')
        return operation(host, **kwargs)

    results = []
    started = datetime.datetime.now()
    for host_name, result in zip(hosts, run_ordered(run_one, hosts, workers, timeout)):
        if isinstance(result, vmodl.MethodFault):
            result = HostActionResult(host_name, action, 'FAIL', result.msg or type(result).__name__)
        elif isinstance(result, Exception):
            result = HostActionResult(host_name, action, 'FAIL', f'{type(result).__name__}: {result}')

        if result.is_fail():
            logger.error(result.to_log_line())
        else:
            logger.info(result.to_log_line())
        results.append(result)

    logger.debug(f'{action}: finished in {datetime.datetime.now() - started}')
    return results
