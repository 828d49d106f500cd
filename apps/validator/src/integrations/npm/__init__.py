"""npm registry and package installation helpers."""

from .installer import InstalledSDK, SDKInstaller, run_node_script
from .registry import NPMDiscoverer, NPMPackage

__all__ = ["InstalledSDK", "NPMDiscoverer", "NPMPackage", "SDKInstaller", "run_node_script"]
