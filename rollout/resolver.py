# resolver.py - HOLFY27 HostConfig Scope Resolution
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Expands a rollout scope (one host or a whole cluster) into host names.

"""
Scope Resolution Module

Resolvers turn a SingleHost or ClusterWide scope into an ordered,
de-duplicated list of host names, or raise ScopeResolutionError.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .base import ClusterWide, SingleHost, ScopeResolutionError, dedupe_hosts

logger = logging.getLogger(__name__)


class VsphereClusterResolver:
    """Resolve scopes against a connected VsphereSession"""

    def __init__(self, session):
        self.session = session

    def resolve(self, scope) -> List[str]:
        if isinstance(scope, SingleHost):
            if self.session.get_host(scope.host) is None:
                raise ScopeResolutionError(f'Host {scope.host} not found in connected sessions')
            return [scope.host]

        if isinstance(scope, ClusterWide):
            cluster = self.session.get_cluster(scope.cluster_name)
            if cluster is None:
                raise ScopeResolutionError(f'Cluster {scope.cluster_name} not found')
            hosts = dedupe_hosts(host.name for host in cluster.host)
            if not hosts:
                raise ScopeResolutionError(f'Cluster {scope.cluster_name} has no hosts')
            logger.debug(f'Cluster {scope.cluster_name} resolved to {len(hosts)} host(s)')
            return hosts

        raise ScopeResolutionError(f'Unsupported scope: {scope!r}')


class StaticClusterResolver:
    """
    Resolve scopes from an in-memory inventory.

    Args:
        clusters: Mapping of cluster name -> ordered host names
        hosts: Extra standalone host names valid for SingleHost scopes
    """

    def __init__(self, clusters: Dict[str, List[str]], hosts: Optional[Iterable[str]] = None):
        self.clusters = {name: list(members) for name, members in clusters.items()}
        self.hosts = set(hosts or [])
        for members in self.clusters.values():
            self.hosts.update(members)

    def resolve(self, scope) -> List[str]:
        if isinstance(scope, SingleHost):
            if scope.host not in self.hosts:
                raise ScopeResolutionError(f'Host {scope.host} not found')
            return [scope.host]

        if isinstance(scope, ClusterWide):
            if scope.cluster_name not in self.clusters:
                raise ScopeResolutionError(f'Cluster {scope.cluster_name} not found')
            hosts = dedupe_hosts(self.clusters[scope.cluster_name])
            if not hosts:
                raise ScopeResolutionError(f'Cluster {scope.cluster_name} has no hosts')
            return hosts

        raise ScopeResolutionError(f'Unsupported scope: {scope!r}')
