"""Main entry point when executing throughcache as a package.

This allows running the package using python -m throughcache.
"""

from throughcache.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
