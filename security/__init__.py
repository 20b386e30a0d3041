# Security module - Whitelist of launchable, openable and runnable targets
# Default deny policy - no implicit trust

from .whitelist import (
    CommandWhitelist, ExecutionDescriptor, WhitelistEntry, normalize_alias,
)

__all__ = ["CommandWhitelist", "ExecutionDescriptor", "WhitelistEntry", "normalize_alias"]
