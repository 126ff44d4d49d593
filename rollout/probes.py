# probes.py - HOLFY27 HostConfig Reachability Probes
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Pre-flight connectivity checks for NTP/DNS/syslog server candidates.

"""
Reachability Probe Module

Probes answer one question: does this address respond?
- PingProbe: ICMP echo using the system ping command
- TcpPortProbe: TCP connect to a fixed port
- CompositeProbe: combine several probes (any/all)

All probes are read-only and carry their own timeout. Errors are treated
as unreachable.
"""

import logging
import socket
import subprocess
from typing import List

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import hostconfig_config as config

logger = logging.getLogger(__name__)


def host_part(address: str) -> str:
    """
    Strip scheme, port and path from an endpoint address.

    'udp://10.0.0.5:514' -> '10.0.0.5', 'ntp.example.com' -> 'ntp.example.com'
    """
    if '://' in address:
        address = address.split('://', 1)[1]
    address = address.split('/', 1)[0]
    if address.startswith('[') and ']' in address:
        return address[1:address.index(']')]
    if address.count(':') == 1:
        address = address.split(':', 1)[0]
    return address


#==============================================================================
# PROBES
#==============================================================================

class PingProbe:
    """Test if an address answers ICMP echo"""

    def __init__(self, count: int = 1, timeout: float = config.PROBE_TIMEOUT_PING):
        self.count = count
        self.timeout = timeout

    def probe(self, address: str) -> bool:
        cmd = ['ping', '-c', str(self.count), '-W', str(max(1, int(self.timeout))), host_part(address)]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout * self.count + 2
            )
        except subprocess.TimeoutExpired:
            logger.debug(f'{address}: ping timed out')
            return False
        except OSError as e:
            logger.warning(f'{address}: unable to run ping: {e}')
            return False
        return result.returncode == 0

    def __repr__(self):
        return f'PingProbe(count={self.count}, timeout={self.timeout})'


class TcpPortProbe:
    """Test if a TCP port is open on an address"""

    def __init__(self, port: int, timeout: float = config.PROBE_TIMEOUT_TCP):
        self.port = port
        self.timeout = timeout

    def probe(self, address: str) -> bool:
        try:
            with socket.create_connection((host_part(address), self.port), timeout=self.timeout):
                return True
        except socket.timeout:
            logger.debug(f'{address}:{self.port} connection timed out')
        except socket.gaierror as e:
            logger.debug(f'{address}: name resolution failed: {e}')
        except OSError as e:
            logger.debug(f'{address}:{self.port} not reachable: {e}')
        return False

    def __repr__(self):
        return f'TcpPortProbe(port={self.port}, timeout={self.timeout})'


class CompositeProbe:
    """
    Combine probes.

    With require_all=False (default) an address is reachable if any probe
    answers; probes are tried in order and stop at the first success.
    """

    def __init__(self, probes: List, require_all: bool = False):
        if not probes:
            raise ValueError('CompositeProbe needs at least one probe')
        self.probes = list(probes)
        self.require_all = require_all

    def probe(self, address: str) -> bool:
        if self.require_all:
            return all(p.probe(address) for p in self.probes)
        return any(p.probe(address) for p in self.probes)


def probe_for_setting(setting: str, timeout: float = config.PROBE_TIMEOUT_PING):
    """
    Pick the default probe for a rollout setting.

    NTP answers over UDP, so ping is the only cheap pre-check. DNS servers
    are accepted if they answer ping or listen on TCP 53. Syslog collectors
    often drop ICMP, so TCP on the syslog port is tried too.

    Args:
        setting: 'ntp', 'dns' or 'syslog'
        timeout: Per-probe timeout in seconds

    Returns:
        Probe object with a probe(address) method
    """
    ping = PingProbe(timeout=timeout)
    if setting == 'dns':
        return CompositeProbe([ping, TcpPortProbe(config.DNS_PORT, timeout=timeout)])
    if setting == 'syslog':
        return CompositeProbe([ping, TcpPortProbe(config.SYSLOG_DEFAULT_PORT, timeout=timeout)])
    return ping
