# hostconfig_config.py - HOLFY27 HostConfig Configuration
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Configuration constants and helpers for HostConfig rollouts.

"""
HostConfig Configuration Module

This module provides configuration constants, paths, and helper functions
for the HostConfig rollout tools.
"""

import os
from configparser import ConfigParser
from typing import Dict, Any, List

#==============================================================================
# PATHS
#==============================================================================

# Home directories
HOME = '/home/holuser'
HOLROOT = f'{HOME}/hol'

# Configuration files
CONFIG_INI = '/tmp/config.ini'
CREDS_FILE = f'{HOME}/creds.txt'

# Output directories
OUTPUT_DIR = f'{HOLROOT}/hostconfig'

#==============================================================================
# TIMEOUTS
#==============================================================================

# Reachability probes (seconds)
PROBE_TIMEOUT_PING = 5
PROBE_TIMEOUT_TCP = 5

# Per-host configuration apply (seconds)
APPLY_TIMEOUT = 120

# Host restart task wait (seconds)
RESTART_TASK_TIMEOUT = 300

#==============================================================================
# CONCURRENCY
#==============================================================================

# 1 = strictly sequential probing and applying
DEFAULT_WORKERS = 1
MAX_WORKERS = 16

#==============================================================================
# ESXI SERVICES AND SETTINGS
#==============================================================================

SSH_SERVICE_NAME = 'TSM-SSH'  # Technical Support Mode - SSH
NTP_SERVICE_NAME = 'ntpd'

SYSLOG_LOGHOST_OPTION = 'Syslog.global.logHost'
SYSLOG_FIREWALL_RULESET = 'syslog'
SYSLOG_DEFAULT_PROTOCOL = 'udp'
SYSLOG_DEFAULT_PORT = 514

# Ports used by TCP reachability probes
DNS_PORT = 53

# Valid service startup policies on ESXi
SERVICE_POLICIES = ('on', 'off', 'automatic')

# Lockdown modes accepted by ChangeLockdownMode
LOCKDOWN_MODES = ('lockdownNormal', 'lockdownStrict')

#==============================================================================
# DEFAULT CREDENTIALS
#==============================================================================

DEFAULT_VCENTER_USER = 'administrator@vsphere.local'
DEFAULT_ESX_USER = 'root'

#==============================================================================
# HELPER FUNCTIONS
#==============================================================================

def get_output_path(name: str, extension: str) -> str:
    """
    Get the output file path for a report.

    Args:
        name: Report name (e.g., 'ntp', 'uptime')
        extension: File extension (e.g., 'html', 'json')

    Returns:
        Full path to output file
    """
    filename = f'hostconfig-{name}.{extension}'
    return os.path.join(OUTPUT_DIR, filename)


def get_password(creds_file: str = CREDS_FILE) -> str:
    """Get the lab password from creds.txt"""
    if os.path.isfile(creds_file):
        with open(creds_file, 'r') as f:
            return f.read().strip()
    return ''


def parse_server_list(raw: str) -> List:
    """
    Parse a server list from config.ini or the command line.

    Entries are separated by commas or newlines. Lines starting with '#'
    are ignored. The first entry becomes the Primary candidate.

    Args:
        raw: Raw server list string

    Returns:
        List of EndpointCandidate objects
    """
    from rollout.base import EndpointCandidate

    entries = []
    for line in raw.replace(',', '\n').split('\n'):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        entries.append(line)

    candidates = []
    for index, address in enumerate(entries):
        if index == 0:
            candidates.append(EndpointCandidate.primary(address))
        else:
            candidates.append(EndpointCandidate.secondary(address))
    return candidates


def clamp_workers(workers: int) -> int:
    """Keep the worker count between 1 and MAX_WORKERS"""
    return max(1, min(int(workers), MAX_WORKERS))


def load_config(path: str = CONFIG_INI) -> Dict[str, Any]:
    """
    Load settings from an INI file.

    Missing file, sections or options fall back to the defaults above.

    Sections:
        [VCENTER]  host, user
        [ROLLOUT]  ntp_servers, dns_servers, syslog_servers,
                   workers, probe_timeout, apply_timeout

    Args:
        path: Path to the INI file

    Returns:
        Dictionary of settings
    """
    parser = ConfigParser()
    if os.path.isfile(path):
        parser.read(path)

    settings = {
        'vcenter': parser.get('VCENTER', 'host', fallback=''),
        'user': parser.get('VCENTER', 'user', fallback=DEFAULT_VCENTER_USER),
        'ntp_servers': parser.get('ROLLOUT', 'ntp_servers', fallback=''),
        'dns_servers': parser.get('ROLLOUT', 'dns_servers', fallback=''),
        'syslog_servers': parser.get('ROLLOUT', 'syslog_servers', fallback=''),
        'workers': clamp_workers(parser.getint('ROLLOUT', 'workers', fallback=DEFAULT_WORKERS)),
        'probe_timeout': parser.getfloat('ROLLOUT', 'probe_timeout', fallback=PROBE_TIMEOUT_PING),
        'apply_timeout': parser.getfloat('ROLLOUT', 'apply_timeout', fallback=APPLY_TIMEOUT),
    }
    return settings
