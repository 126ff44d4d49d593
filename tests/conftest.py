#!/usr/bin/env python3
# conftest.py - HOLFY27 HostConfig Pytest Configuration and Fixtures
# Version 1.0 - October 2026
# Author - HOL Core Team
# Shared fixtures for all test modules

import pytest
import os
import sys
import tempfile
import threading
import time
from configparser import ConfigParser
from unittest.mock import MagicMock

# Add parent directory to path for imports
parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, parent_dir)

from rollout.resolver import StaticClusterResolver

#==============================================================================
# FAKE COLLABORATORS
#==============================================================================

class FakeProbe:
    """Probe with a fixed reachability map; records every address probed"""

    def __init__(self, reachable=None, delays=None, default=True):
        self.reachable = dict(reachable or {})
        self.delays = dict(delays or {})
        self.default = default
        self.calls = []
        self.lock = threading.Lock()

    def probe(self, address):
        with self.lock:
            self.calls.append(address)
        if address in self.delays:
            time.sleep(self.delays[address])
        result = self.reachable.get(address, self.default)
        if isinstance(result, Exception):
            raise result
        return result


class RecordingResolver:
    """Wraps a resolver and counts resolve() calls"""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []

    def resolve(self, scope):
        self.calls.append(scope)
        return self.inner.resolve(scope)


class FakeConfigClient:
    """
    Config client that records (host, addresses) per call.

    failures maps host -> reason string, an Exception instance to raise,
    or False for a failure without a reason.
    """

    def __init__(self, failures=None, delays=None):
        self.failures = dict(failures or {})
        self.delays = dict(delays or {})
        self.calls = []
        self.completed = []
        self.lock = threading.Lock()

    def apply(self, host, endpoints):
        with self.lock:
            self.calls.append((host, [e.address for e in endpoints]))
        if host in self.delays:
            time.sleep(self.delays[host])
        with self.lock:
            self.completed.append(host)

        failure = self.failures.get(host)
        if isinstance(failure, Exception):
            raise failure
        if failure is False:
            return False, None
        if failure:
            return False, failure
        return True, None


#==============================================================================
# FIXTURES - Collaborators
#==============================================================================

@pytest.fixture
def inventory():
    """Two clusters and a standalone host"""
    return StaticClusterResolver(
        {
            'cluster-mgmt-01a': ['esx-01a.site-a.vcf.lab', 'esx-02a.site-a.vcf.lab'],
            'cluster-wld-01a': [
                'esx-03a.site-a.vcf.lab',
                'esx-04a.site-a.vcf.lab',
                'esx-03a.site-a.vcf.lab',
                'esx-05a.site-a.vcf.lab',
            ],
            'cluster-empty': [],
        },
        hosts=['esx-99a.site-a.vcf.lab']
    )


@pytest.fixture
def resolver(inventory):
    return RecordingResolver(inventory)


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def client():
    return FakeConfigClient()


#==============================================================================
# FIXTURES - Mock pyVmomi objects
#==============================================================================

def make_service(key, running=False, policy='off'):
    service = MagicMock()
    service.key = key
    service.running = running
    service.policy = policy
    return service


def make_host(name='esx-01a.site-a.vcf.lab', services=None):
    """Create a MagicMock vim.HostSystem with a service list"""
    host = MagicMock()
    host.name = name
    host.configManager.serviceSystem.serviceInfo.service = services or [
        make_service('ntpd', running=True, policy='on'),
        make_service('TSM-SSH', running=False, policy='off'),
    ]
    return host


@pytest.fixture
def mock_host():
    return make_host()


@pytest.fixture
def mock_session():
    """Session whose get_host returns a fresh mock host per name"""
    hosts = {}

    def get_host(name):
        if name.startswith('missing'):
            return None
        if name not in hosts:
            hosts[name] = make_host(name)
        return hosts[name]

    session = MagicMock()
    session.get_host.side_effect = get_host
    session.hosts = hosts
    return session


#==============================================================================
# FIXTURES - Files
#==============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_config_ini(temp_dir):
    """Create a temporary config.ini file"""
    config_path = os.path.join(temp_dir, 'config.ini')

    config = ConfigParser()
    config.add_section('VCENTER')
    config.set('VCENTER', 'host', 'vcsa-01a.site-a.vcf.lab')
    config.set('VCENTER', 'user', 'administrator@vsphere.local')
    config.add_section('ROLLOUT')
    config.set('ROLLOUT', 'ntp_servers', '10.1.10.1\n# old server\n10.1.10.2')
    config.set('ROLLOUT', 'dns_servers', '10.1.10.129, 10.1.10.130')
    config.set('ROLLOUT', 'workers', '4')
    config.set('ROLLOUT', 'probe_timeout', '2')

    with open(config_path, 'w') as f:
        config.write(f)

    return config_path
