"""Top level package for :mod:`hostprobe`.

The public operations live in submodules which pull in ``ctypes`` and
``psutil``.  They are imported lazily when the matching attribute is first
accessed so that ``import hostprobe`` stays cheap.
"""

__version__ = "0.1.0"

_EXPORTS = {
    "windows_version": "versions",
    "macos_version": "versions",
    "linux_version": "versions",
    "VERSION_SENTINEL": "versions",
    "get_self_exe_path": "self_exe",
    "parent_pid": "process",
    "process_name": "process",
    "identify": "process",
    "ProcessIdentity": "process",
    "is_admin": "privileges",
    "run_as_admin": "privileges",
    "enable_long_paths_support": "privileges",
    "ConsoleCodec": "console",
    "init_console": "console",
    "reset_console": "console",
    "to_utf8": "console",
    "ExecutablePathError": "errors",
    "EncodingConversionError": "errors",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str):
    module = _EXPORTS.get(name)
    if module is None:
        raise AttributeError(name)
    from importlib import import_module

    return getattr(import_module(f"{__name__}.{module}"), name)
