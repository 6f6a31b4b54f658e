"""Ceremony client node installer.

Steps, in order:
- Fresh clone of the ceremony client repo on the release branch
- OS/arch detection and download of the matching release binaries
- systemd unit generation and (re)start
- Literal patching of the node config.yml
- Optional data store snapshot restore
- Following the service journal

State is persisted between steps so a failed run can be resumed.
"""

__all__ = []
