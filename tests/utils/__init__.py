"""Test utilities."""

from tests.utils.sqlite_provisioner import SqliteTenantProvisioner

__all__ = ["SqliteTenantProvisioner"]
