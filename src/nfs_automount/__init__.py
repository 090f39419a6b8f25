"""nfs-automount - find and mount NFS shares on a subnet

Philosophy:
- Ruthless simplicity
- Brick architecture (self-contained modules)
- Local recovery for host/export failures, fail fast on global ones

Runs once per VM provision (e.g. as an Azure Custom Script Extension): waits
for an NFS server to appear on a subnet, lists its exports and mounts them.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
