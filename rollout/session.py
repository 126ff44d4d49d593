# session.py - HOLFY27 HostConfig vSphere Session
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Connection handling and inventory lookups over pyVmomi.

"""
vSphere Session Module

Wraps one or more ServiceInstance connections (vCenter or standalone ESXi)
and provides the inventory lookups the rollout tools need:
- get_host(name) / get_all_hosts()
- get_cluster(name)
"""

import logging
from typing import Dict, List, Optional

from pyVim import connect
from pyVmomi import vim

from .base import SessionError

logger = logging.getLogger(__name__)


#==============================================================================
# INVENTORY HELPERS
#==============================================================================

def get_all_objs(si_content, vimtype) -> Dict:
    """
    Get all managed objects of the given type(s).

    Args:
        si_content: ServiceInstance content
        vimtype: List of vim types, e.g. [vim.HostSystem]

    Returns:
        Dictionary of managed object -> name
    """
    obj = {}
    container = si_content.viewManager.CreateContainerView(
        si_content.rootFolder, vimtype, True
    )
    try:
        for managed_object_ref in container.view:
            obj[managed_object_ref] = managed_object_ref.name
    finally:
        container.Destroy()
    return obj


#==============================================================================
# SESSION
#==============================================================================

class VsphereSession:
    """
    Holds connected ServiceInstances.

    Use as a context manager to disconnect on exit:

        with VsphereSession() as session:
            session.connect('vcsa-01a.site-a.vcf.lab', user, password)
            host = session.get_host('esx-01a.site-a.vcf.lab')
    """

    def __init__(self, sis: Optional[List] = None):
        self.sis = list(sis) if sis else []
        self.sisvc = {}

    def connect(self, host: str, user: str, password: str, port: int = 443):
        """
        Connect to a vCenter or ESXi host.

        Raises:
            SessionError: if the connection fails
        """
        try:
            si = connect.SmartConnect(
                host=host,
                user=user,
                pwd=password,
                port=port,
                disableSslCertValidation=True
            )
        except (vim.fault.InvalidLogin, vim.fault.NoPermission) as e:
            raise SessionError(f'Login to {host} as {user} failed: {e.msg}') from e
        except Exception as e:
            raise SessionError(f'Failed to connect to {host}: {e}') from e

        self.sisvc[host] = si
        self.sis.append(si)
        logger.info(f'Connected to {host}')
        return si

    def disconnect(self):
        """Disconnect all sessions"""
        for si in self.sis:
            try:
                connect.Disconnect(si)
            except Exception as e:
                logger.debug(f'Disconnect failed: {e}')
        self.sis.clear()
        self.sisvc.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()
        return False

    def get_all_hosts(self) -> List:
        """All vim.HostSystem objects across connected sessions"""
        all_hosts = []
        for si in self.sis:
            all_hosts.extend(get_all_objs(si.content, [vim.HostSystem]).keys())
        return all_hosts

    def get_host(self, name: str):
        """
        Retrieve an ESXi host by name from all session content.

        Returns:
            vim.HostSystem or None
        """
        for host in self.get_all_hosts():
            if host.name == name:
                return host
        return None

    def get_cluster(self, cluster_name: str):
        """
        Get a cluster object by name from any connected vCenter.

        Returns:
            vim.ClusterComputeResource or None
        """
        for si in self.sis:
            for cluster, name in get_all_objs(si.content, [vim.ClusterComputeResource]).items():
                if name == cluster_name:
                    return cluster
        return None
