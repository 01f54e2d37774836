import os
import sys


def resolve_app_path(path) -> str:
    """
    Resolve a path from the settings file.
    Absolute paths are kept; relative ones are taken from the folder the
    executable sits in when frozen (the game folder), else the current dir.
    """
    path = os.fspath(path)
    if os.path.isabs(path):
        return path
    if getattr(sys, 'frozen', False):
        return os.path.join(os.path.dirname(sys.executable), path)
    return os.path.abspath(path)
