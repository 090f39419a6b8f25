"""
Captured output of the external tools, used by parser and workflow tests.

Lines are tab-separated exactly as nmap writes them with -oG.
"""

# ============================================================================
# NMAP GREPABLE OUTPUT (nmap -p 2049 --open -oG - 10.0.0.0/28)
# ============================================================================

NMAP_TWO_HOSTS = (
    "# Nmap 7.92 scan initiated Tue Mar  5 10:12:01 2024 as: "
    "nmap -p 2049 --open -oG - 10.0.0.0/28\n"
    "Host: 10.0.0.4 ()\tStatus: Up\n"
    "Host: 10.0.0.4 ()\tPorts: 2049/open/tcp//nfs///\n"
    "Host: 10.0.0.5 (nfs02.internal.cloudapp.net)\tStatus: Up\n"
    "Host: 10.0.0.5 (nfs02.internal.cloudapp.net)\tPorts: 2049/open/tcp//nfs///\n"
    "# Nmap done at Tue Mar  5 10:12:03 2024 -- 16 IP addresses (2 hosts up) "
    "scanned in 1.52 seconds\n"
)

NMAP_NO_HOSTS = (
    "# Nmap 7.92 scan initiated Tue Mar  5 10:12:01 2024 as: "
    "nmap -p 2049 --open -oG - 10.0.0.0/28\n"
    "# Nmap done at Tue Mar  5 10:12:03 2024 -- 16 IP addresses (0 hosts up) "
    "scanned in 1.52 seconds\n"
)

NMAP_MIXED_PORTS = (
    "Host: 10.0.0.6 ()\tPorts: 111/open/tcp//rpcbind///, 2049/open/tcp//nfs///\n"
    "Host: 10.0.0.7 ()\tPorts: 2049/filtered/tcp//nfs///\n"
    "Host: 10.0.0.8 ()\tPorts: 12049/open/tcp/////\n"
    "Host: 10.0.0.9 ()\tPorts: 2049/closed/tcp//nfs///\n"
)

# ============================================================================
# SHOWMOUNT OUTPUT (showmount -e <host>)
# ============================================================================

SHOWMOUNT_ROOT_AND_DATA = "Export list for 10.0.0.4:\n/     *\n/data 10.0.0.0/28\n"

SHOWMOUNT_NESTED = (
    "Export list for 10.0.0.5:\n"
    "/exports/home    10.0.0.0/24\n"
    "/exports/scratch (everyone)\n"
    "\n"
)

SHOWMOUNT_EMPTY = "Export list for 10.0.0.6:\n"

SHOWMOUNT_RPC_ERROR = "clnt_create: RPC: Program not registered\n"

# ============================================================================
# MOUNT TABLE (/proc/mounts)
# ============================================================================

PROC_MOUNTS = (
    "sysfs /sys sysfs rw,nosuid,nodev,noexec,relatime 0 0\n"
    "/dev/sda1 / ext4 rw,relatime 0 0\n"
    "10.0.0.4:/data /mnt/10.0.0.4/data nfs "
    "rw,relatime,vers=3,rsize=262144,wsize=262144,hard,proto=tcp 0 0\n"
    "nfs02:/exports/home /home/shared nfs4 rw,relatime,vers=4.1 0 0\n"
    "10.0.0.5:/my\\040docs /mnt/10.0.0.5/my\\040docs nfs rw,vers=3 0 0\n"
)
