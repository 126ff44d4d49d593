# base.py - HOLFY27 HostConfig Base Classes
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Shared dataclasses, scopes and exceptions for host configuration rollouts.

"""
Base classes for HostConfig rollouts.

This module provides the core data structures used by all rollout modules:
- EndpointCandidate: A proposed NTP/DNS/syslog server address
- ReachabilityResult: Outcome of probing one candidate
- SingleHost / ClusterWide: Rollout scopes
- HostApplyOutcome: Per-host result of applying an endpoint list
- HostActionResult: Per-host result of a simple host operation
- RolloutReport: Complete record of one rollout invocation
"""

import datetime
import enum
import json
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any, Union


#==============================================================================
# EXCEPTIONS
#==============================================================================

class RolloutError(Exception):
    """Base class for all rollout errors"""


class InvalidInputError(RolloutError):
    """Candidate list is malformed (wrong number of Primary entries)"""


class ScopeResolutionError(RolloutError):
    """Rollout scope does not resolve to any host"""


class ApplyError(RolloutError):
    """Applying a configuration to one host failed"""

    def __init__(self, host: str, reason: str):
        super().__init__(f'{host}: {reason}')
        self.host = host
        self.reason = reason


class SessionError(RolloutError):
    """Connection to vCenter/ESXi failed"""


#==============================================================================
# ENDPOINT CANDIDATES
#==============================================================================

class EndpointRole(enum.Enum):
    PRIMARY = 'primary'
    SECONDARY = 'secondary'


@dataclass(frozen=True)
class EndpointCandidate:
    """
    A network address proposed as a service endpoint.

    Attributes:
        address: Hostname or IP address
        role: PRIMARY or SECONDARY
    """
    address: str
    role: EndpointRole = EndpointRole.SECONDARY

    @classmethod
    def primary(cls, address: str) -> 'EndpointCandidate':
        return cls(address, EndpointRole.PRIMARY)

    @classmethod
    def secondary(cls, address: str) -> 'EndpointCandidate':
        return cls(address, EndpointRole.SECONDARY)

    def is_primary(self) -> bool:
        return self.role is EndpointRole.PRIMARY


@dataclass
class ReachabilityResult:
    """Outcome of probing a single EndpointCandidate"""
    candidate: EndpointCandidate
    reachable: bool
    probed_at: datetime.datetime = field(default_factory=datetime.datetime.now)
    error: str = ''

    def to_dict(self) -> Dict:
        return {
            'address': self.candidate.address,
            'role': self.candidate.role.value,
            'reachable': self.reachable,
            'probed_at': self.probed_at.isoformat(),
            'error': self.error,
        }


#==============================================================================
# SCOPES
#==============================================================================

@dataclass(frozen=True)
class SingleHost:
    """Target one ESXi host by name"""
    host: str

    def describe(self) -> str:
        return f'host {self.host}'


@dataclass(frozen=True)
class ClusterWide:
    """Target every host of a named cluster"""
    cluster_name: str

    def describe(self) -> str:
        return f'cluster {self.cluster_name}'


RolloutScope = Union[SingleHost, ClusterWide]


def dedupe_hosts(hosts) -> List[str]:
    """Drop duplicate host names, keeping first-seen order"""
    seen = set()
    ordered = []
    for host in hosts:
        if host in seen:
            continue
        seen.add(host)
        ordered.append(host)
    return ordered


#==============================================================================
# OUTCOMES
#==============================================================================

@dataclass
class HostApplyOutcome:
    """
    Result of applying the filtered endpoint list to one host.

    Attributes:
        host: Host name
        applied: Endpoint addresses sent to the host, in order (may be empty)
        success: True if the host accepted the configuration
        reason: Failure reason, present iff success is False
    """
    host: str
    applied: List[str]
    success: bool
    reason: Optional[str] = None

    def __post_init__(self):
        if self.success:
            self.reason = None
        elif not self.reason:
            self.reason = 'apply failed'

    def to_dict(self) -> Dict:
        return asdict(self)

    def to_log_line(self) -> str:
        servers = ', '.join(self.applied) if self.applied else '(none)'
        if self.success:
            return f'PASS: {self.host} - applied {servers}'
        return f'FAIL: {self.host} - {self.reason}'


@dataclass
class HostActionResult:
    """
    Result of a simple host operation (uptime, SSH, lockdown, ...).

    Status meanings:
        - PASS: Change applied, or already in the requested state
        - FAIL: Operation failed - see message
        - INFO: Read-only query, details hold the data
        - SKIPPED: Nothing done (dry run)
    """
    host: str
    action: str
    status: str  # PASS, FAIL, INFO, SKIPPED
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def is_pass(self) -> bool:
        return self.status in ('PASS', 'INFO', 'SKIPPED')

    def is_fail(self) -> bool:
        return self.status == 'FAIL'

    def to_dict(self) -> Dict:
        return asdict(self)

    def to_log_line(self) -> str:
        return f"{self.status}: {self.host} [{self.action}] - {self.message}"


#==============================================================================
# ROLLOUT REPORT
#==============================================================================

@dataclass
class RolloutReport:
    """
    Complete record of one rollout invocation.

    Attributes:
        setting: What was rolled out (ntp, dns, syslog)
        scope: Description of the target scope
        hosts: Resolved hosts, in resolution order
        probes: One ReachabilityResult per candidate, in input order
        outcomes: One HostApplyOutcome per resolved host, in resolution order
        started / finished: ISO timestamps
    """
    setting: str
    scope: str
    hosts: List[str] = field(default_factory=list)
    probes: List[ReachabilityResult] = field(default_factory=list)
    outcomes: List[HostApplyOutcome] = field(default_factory=list)
    started: str = ''
    finished: str = ''

    def __post_init__(self):
        if not self.started:
            self.started = datetime.datetime.now().isoformat()

    @property
    def skipped(self) -> List[EndpointCandidate]:
        """Candidates excluded because they did not answer the probe"""
        return [p.candidate for p in self.probes if not p.reachable]

    @property
    def applied(self) -> List[str]:
        """Endpoint list that was sent to every host"""
        return [p.candidate.address for p in sort_primary_first(self.probes) if p.reachable]

    @property
    def overall_status(self) -> str:
        if any(not o.success for o in self.outcomes):
            return 'FAIL'
        if self.skipped or not self.applied:
            return 'WARN'
        return 'PASS'

    def get_summary(self) -> Dict[str, int]:
        return {
            'hosts': len(self.outcomes),
            'succeeded': sum(1 for o in self.outcomes if o.success),
            'failed': sum(1 for o in self.outcomes if not o.success),
            'reachable': sum(1 for p in self.probes if p.reachable),
            'skipped': len(self.skipped),
        }

    def to_dict(self) -> Dict:
        return {
            'setting': self.setting,
            'scope': self.scope,
            'started': self.started,
            'finished': self.finished,
            'overall_status': self.overall_status,
            'summary': self.get_summary(),
            'applied': self.applied,
            'hosts': list(self.hosts),
            'probes': [p.to_dict() for p in self.probes],
            'outcomes': [o.to_dict() for o in self.outcomes],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


def sort_primary_first(items):
    """
    Stable-sort candidates (or probe results) so the Primary comes first.

    Secondaries keep their relative input order.
    """
    def is_primary(item):
        candidate = getattr(item, 'candidate', item)
        return candidate.is_primary()

    return sorted(items, key=lambda item: 0 if is_primary(item) else 1)


#==============================================================================
# UTILITY FUNCTIONS
#==============================================================================

def get_status_icon(status: str) -> str:
    """
    Get icon for a status.

    Args:
        status: Result status string

    Returns:
        Emoji character representing the status
    """
    icons = {
        'PASS': '✅',
        'FAIL': '❌',
        'WARN': '⚠️',
        'INFO': 'ℹ️',
        'SKIPPED': '⏭️',
    }
    return icons.get(status, '❓')


def get_status_class(status: str) -> str:
    """Get CSS class for a status"""
    classes = {
        'PASS': 'status-pass',
        'FAIL': 'status-fail',
        'WARN': 'status-warn',
        'INFO': 'status-info',
        'SKIPPED': 'status-skipped',
    }
    return classes.get(status, 'status-unknown')
