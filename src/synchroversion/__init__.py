"""Synchroversion: file-system-native versioning for a single text asset.

Layout:
    <root>/<name>/
    ├── latest.txt                     # Latest pointer: newest full snapshot, next diff baseline
    ├── state/
    │   └── 20261019-031500.txt        # Unified diff (--- previous / +++ current) per change
    ├── latest/
    │   └── 20261019-031500.txt        # Full snapshot per change (retention-limited)
    └── .lock                          # Advisory lock held during exec

The newest version entry and latest.txt are hard links to one file, so
the current snapshot is stored once per volume.
"""

from synchroversion.store.asset import VersionedAsset

__all__ = ["VersionedAsset"]
