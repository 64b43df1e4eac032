"""
evalex CLI package.

- main.py: the typer application and global options
- expr.py: eval, tree and tokens commands
- utils.py: shared console and error helpers
"""

from evalex.cli.main import app, main
from evalex.cli.utils import version_callback

__all__ = ["app", "main", "version_callback"]
