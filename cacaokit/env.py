"""Environment variable lookup with a fallback."""

import os


def get_env(key: str, fallback: str) -> str:
    """Return the value of environment variable *key*, or *fallback* if it is unset.

    A variable that is set to the empty string counts as set.
    """
    return os.environ.get(key, fallback)