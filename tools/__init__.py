# Tools module - Host capabilities
# Each capability touches the host in exactly one way
# Inputs always come from the whitelist, never from user text

from .launchers import ProcessLauncher, UrlOpener, ShellExecutor, ShellResult
from .files import DirectoryLister, DirectoryListing

__all__ = [
    "ProcessLauncher",
    "UrlOpener",
    "ShellExecutor",
    "ShellResult",
    "DirectoryLister",
    "DirectoryListing",
]
