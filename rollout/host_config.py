# host_config.py - HOLFY27 HostConfig Endpoint Configuration Clients
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Apply NTP, DNS and syslog server lists to ESXi hosts via pyVmomi.

"""
Endpoint Configuration Clients

Each client exposes apply(host_name, endpoints) -> (success, reason) and is
handed to the EndpointRolloutPlanner:
- NtpServerClient: dateTimeSystem NTP servers, restarts ntpd
- DnsServerClient: networkSystem DNS servers
- SyslogTargetClient: Syslog.global.logHost advanced option
"""

import logging
from typing import List, Optional, Tuple

from pyVmomi import vim, vmodl

from .base import ApplyError

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import hostconfig_config as config

logger = logging.getLogger(__name__)


#==============================================================================
# SERVICE HELPERS
#==============================================================================

def find_service(host, service_key: str):
    """
    Find a service on an ESXi host.

    Args:
        host: ESXi host object (vim.HostSystem)
        service_key: Service key, e.g. 'ntpd' or 'TSM-SSH'

    Returns:
        vim.host.Service or None
    """
    service_system = host.configManager.serviceSystem
    for service in service_system.serviceInfo.service:
        if service.key == service_key:
            return service
    return None


def restart_service(host, service_key: str, policy: str = 'on'):
    """Start or restart a service and set its startup policy"""
    service_system = host.configManager.serviceSystem
    service = find_service(host, service_key)
    if service is None:
        raise ApplyError(host.name, f'service {service_key} not found')

    if service.running:
        service_system.RestartService(id=service_key)
    else:
        service_system.StartService(id=service_key)

    if service.policy != policy:
        service_system.UpdateServicePolicy(id=service_key, policy=policy)


#==============================================================================
# CLIENTS
#==============================================================================

class EndpointConfigClient:
    """
    Base class for endpoint configuration clients.

    Subclasses implement _apply(host, addresses) against a vim.HostSystem.
    vSphere faults raised while applying become ApplyError.
    """

    setting = 'endpoints'

    def __init__(self, session, dry_run: bool = False):
        self.session = session
        self.dry_run = dry_run

    def apply(self, host_name: str, endpoints: List) -> Tuple[bool, Optional[str]]:
        addresses = [e.address for e in endpoints]

        host = self.session.get_host(host_name)
        if host is None:
            return False, 'host not found in connected sessions'

        if self.dry_run:
            logger.info(f'{host_name}: would set {self.setting} to {addresses}')
            return True, None

        try:
            self._apply(host, addresses)
        except vmodl.MethodFault as e:
            raise ApplyError(host_name, e.msg or type(e).__name__) from e
        return True, None

    def _apply(self, host, addresses: List[str]):
        raise NotImplementedError


class NtpServerClient(EndpointConfigClient):
    """Replace the NTP server list and restart ntpd"""

    setting = 'ntp'

    def _apply(self, host, addresses: List[str]):
        ntp_config = vim.host.NtpConfig(server=addresses)
        date_config = vim.host.DateTimeConfig(ntpConfig=ntp_config)
        host.configManager.dateTimeSystem.UpdateDateTimeConfig(config=date_config)

        if addresses:
            restart_service(host, config.NTP_SERVICE_NAME, policy='on')


class DnsServerClient(EndpointConfigClient):
    """Replace the DNS server list, keeping hostname, domain and search list"""

    setting = 'dns'

    def _apply(self, host, addresses: List[str]):
        network_system = host.configManager.networkSystem
        current = network_system.dnsConfig

        dns_config = vim.host.DnsConfig(
            dhcp=False,
            hostName=current.hostName,
            domainName=current.domainName,
            address=addresses,
            searchDomain=list(current.searchDomain or [])
        )
        network_system.UpdateDnsConfig(config=dns_config)


class SyslogTargetClient(EndpointConfigClient):
    """Point Syslog.global.logHost at the given collectors"""

    setting = 'syslog'

    def __init__(self, session, dry_run: bool = False,
                 protocol: str = config.SYSLOG_DEFAULT_PROTOCOL,
                 port: int = config.SYSLOG_DEFAULT_PORT):
        super().__init__(session, dry_run)
        self.protocol = protocol
        self.port = port

    def format_target(self, address: str) -> str:
        if '://' in address:
            return address
        return f'{self.protocol}://{address}:{self.port}'

    def _apply(self, host, addresses: List[str]):
        value = ','.join(self.format_target(a) for a in addresses)
        option = vim.option.OptionValue(key=config.SYSLOG_LOGHOST_OPTION, value=value)
        host.configManager.advancedOption.UpdateOptions(changedValue=[option])

        firewall = host.configManager.firewallSystem
        if addresses:
            firewall.EnableRuleset(id=config.SYSLOG_FIREWALL_RULESET)
        else:
            firewall.DisableRuleset(id=config.SYSLOG_FIREWALL_RULESET)


CLIENTS = {
    'ntp': NtpServerClient,
    'dns': DnsServerClient,
    'syslog': SyslogTargetClient,
}
