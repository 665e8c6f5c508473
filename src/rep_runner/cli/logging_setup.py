"""Root logger configuration for the CLI."""

import logging

from rich.logging import RichHandler

from .views import err_console


def configure_logging(verbose: bool = False) -> None:
    """
    Route library logging through rich.

    WARNING and above by default, DEBUG with ``--verbose``.  Calling it again
    replaces the handler instead of stacking a second one.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(console=err_console, show_path=verbose, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
