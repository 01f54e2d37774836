import os
import sys
import logging
import tempfile
import ctypes

logger = logging.getLogger(__name__)

ERROR_ALREADY_EXISTS = 183


class WindowLivenessProbe:
    """
    Checks whether the game client is running by looking for its top-level
    window title. An empty title disables the check (always alive), which is
    handy when running against a plain folder during development.
    """

    def __init__(self, window_title: str):
        self.window_title = window_title

    def __call__(self) -> bool:
        return self.is_alive()

    def is_alive(self) -> bool:
        if not self.window_title:
            return True
        return self._find_window(self.window_title)

    @staticmethod
    def _find_window(title: str) -> bool:
        try:
            user32 = ctypes.windll.user32
            hwnd = user32.FindWindowW(None, title)
        except (AttributeError, OSError) as e:
            # Not on Windows: the host window cannot exist
            logger.debug(f"Window lookup unavailable: {e}")
            return False
        return bool(hwnd)


def _kernel32():
    from ctypes import wintypes

    kernel32 = ctypes.WinDLL('kernel32', use_last_error=True)
    kernel32.CreateMutexW.argtypes = (wintypes.LPVOID, wintypes.BOOL, wintypes.LPCWSTR)
    kernel32.CreateMutexW.restype = wintypes.HANDLE
    kernel32.ReleaseMutex.argtypes = (wintypes.HANDLE,)
    kernel32.CloseHandle.argtypes = (wintypes.HANDLE,)
    return kernel32


class InstanceLock:
    """
    Named, process-wide lock that keeps two pollers from racing on the same
    log folder.

    On Windows this is a kernel mutex in the Global namespace; elsewhere a
    QLockFile in the temp directory named after the lock.
    """

    def __init__(self, name: str):
        self.name = name
        self._handle = None
        self._lock_file = None

    def acquire(self) -> bool:
        """Try once, without waiting. False if another instance holds it."""
        if sys.platform == 'win32':
            return self._acquire_mutex()
        return self._acquire_lock_file()

    def release(self):
        if self._handle is not None:
            kernel32 = _kernel32()
            kernel32.ReleaseMutex(self._handle)
            kernel32.CloseHandle(self._handle)
            self._handle = None
        if self._lock_file is not None:
            self._lock_file.unlock()
            self._lock_file = None

    def __enter__(self):
        return self.acquire()

    def __exit__(self, exc_type, exc, tb):
        self.release()

    def _acquire_mutex(self) -> bool:
        kernel32 = _kernel32()
        handle = kernel32.CreateMutexW(None, False, f"Global\\{self.name}")
        # Read right after the call; ctypes saved it for this thread
        last_error = ctypes.get_last_error()
        if not handle:
            logger.debug(f"Failed to create mutex. (error {last_error})")
            return False
        if last_error == ERROR_ALREADY_EXISTS:
            kernel32.CloseHandle(handle)
            return False
        self._handle = handle
        return True

    def _acquire_lock_file(self) -> bool:
        from PySide6.QtCore import QLockFile

        lock_file = QLockFile(self.lock_file_path())
        # No age-based staleness; a file left by a dead process is still reclaimed
        lock_file.setStaleLockTime(0)
        if not lock_file.tryLock(0):
            return False
        self._lock_file = lock_file
        return True

    def lock_file_path(self) -> str:
        return os.path.join(tempfile.gettempdir(), f"{self.name}.lock")
