"""Allow `python -m nfs_automount`."""

from nfs_automount.cli import main

if __name__ == "__main__":
    main()
