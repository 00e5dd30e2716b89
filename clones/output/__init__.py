# clones Output Module
# Rich console output

from clones.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
