# HOLFY27 HostConfig Rollout Modules
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# This package contains the endpoint rollout planner and its collaborators.

from .base import (
    ApplyError,
    ClusterWide,
    EndpointCandidate,
    EndpointRole,
    HostActionResult,
    HostApplyOutcome,
    InvalidInputError,
    ReachabilityResult,
    RolloutError,
    RolloutReport,
    ScopeResolutionError,
    SessionError,
    SingleHost,
    get_status_icon,
    get_status_class,
)
from .planner import EndpointRolloutPlanner

from . import probes
from . import resolver
from . import session
from . import host_config
from . import host_ops

__all__ = [
    # Base classes
    'ApplyError',
    'ClusterWide',
    'EndpointCandidate',
    'EndpointRole',
    'HostActionResult',
    'HostApplyOutcome',
    'InvalidInputError',
    'ReachabilityResult',
    'RolloutError',
    'RolloutReport',
    'ScopeResolutionError',
    'SessionError',
    'SingleHost',
    'get_status_icon',
    'get_status_class',
    'EndpointRolloutPlanner',
    # Modules
    'probes',
    'resolver',
    'session',
    'host_config',
    'host_ops',
]
