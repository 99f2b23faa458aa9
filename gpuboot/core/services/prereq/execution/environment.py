"""
L4 Execution — Persistent environment stores and the process snapshot.

External installers edit the machine/user environment (on Windows, the
registry), but this process started with a copy taken before they ran.
``ProcessEnvironmentSnapshot`` is the one object that owns the process
view of that state; ``refresh()`` re-merges the persistent stores after
every install, and every reader (probes, installers, the build) goes
through it.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Literal, MutableMapping

logger = logging.getLogger(__name__)

Scope = Literal["machine", "user"]

_PERCENT_VAR_RE = re.compile(r"%([^%]+)%")


def _norm_entry(entry: str) -> str:
    return os.path.normcase(os.path.normpath(entry.strip().strip('"')))


def path_contains(path_value: str, entry: str, sep: str = os.pathsep) -> bool:
    """True if ``entry`` is already one of the entries of ``path_value``."""
    target = _norm_entry(entry)
    return any(_norm_entry(p) == target for p in path_value.split(sep) if p.strip())


def _lookup(mapping: MutableMapping[str, str] | dict[str, str], name: str) -> str | None:
    if name in mapping:
        return mapping[name]
    lowered = name.lower()
    for key, value in mapping.items():
        if key.lower() == lowered:
            return value
    return None


def _expand(value: str, env: MutableMapping[str, str] | dict[str, str]) -> str:
    """Expand ``%VAR%`` references the way the Windows shell does."""

    def repl(m: re.Match) -> str:
        found = _lookup(env, m.group(1))
        return found if found is not None else m.group(0)

    return _PERCENT_VAR_RE.sub(repl, value)


# ── Persistent stores ──────────────────────────────────────────


class EnvironmentStore(ABC):
    """Persistent machine/user environment that outlives this process."""

    @abstractmethod
    def read(self, scope: Scope) -> dict[str, str]:
        """All string variables of one scope."""

    @abstractmethod
    def append_machine_path(self, entry: str) -> bool:
        """Append ``entry`` to the machine PATH.

        Returns:
            True if the PATH changed, False if the entry was already there.
        """

    @abstractmethod
    def remove_machine_path(self, entry: str) -> bool:
        """Remove ``entry`` from the machine PATH.

        Returns:
            True if the PATH changed.
        """


class WindowsRegistryStore(EnvironmentStore):
    """The registry-backed environment of a Windows machine."""

    MACHINE_KEY = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
    USER_KEY = "Environment"

    def _open(self, scope: Scope, write: bool = False):
        import winreg

        hive = winreg.HKEY_LOCAL_MACHINE if scope == "machine" else winreg.HKEY_CURRENT_USER
        sub = self.MACHINE_KEY if scope == "machine" else self.USER_KEY
        access = winreg.KEY_READ | (winreg.KEY_SET_VALUE if write else 0)
        return winreg.OpenKey(hive, sub, 0, access)

    def read(self, scope: Scope) -> dict[str, str]:
        import winreg

        values: dict[str, str] = {}
        try:
            with self._open(scope) as key:
                i = 0
                while True:
                    try:
                        name, value, vtype = winreg.EnumValue(key, i)
                    except OSError:
                        break
                    if vtype in (winreg.REG_SZ, winreg.REG_EXPAND_SZ):
                        values[name] = value
                    i += 1
        except FileNotFoundError:
            logger.debug("No %s environment key", scope)
        return values

    def _write_machine_path(self, transform) -> bool:
        import winreg

        with self._open("machine", write=True) as key:
            try:
                current, _ = winreg.QueryValueEx(key, "Path")
            except FileNotFoundError:
                current = ""
            updated = transform(current)
            if updated is None:
                return False
            winreg.SetValueEx(key, "Path", 0, winreg.REG_EXPAND_SZ, updated)
        self._broadcast_change()
        return True

    def append_machine_path(self, entry: str) -> bool:
        def transform(current: str) -> str | None:
            if path_contains(current, entry, ";"):
                return None
            return f"{current.rstrip(';')};{entry}" if current else entry

        return self._write_machine_path(transform)

    def remove_machine_path(self, entry: str) -> bool:
        target = _norm_entry(entry)

        def transform(current: str) -> str | None:
            parts = [p for p in current.split(";") if p.strip()]
            kept = [p for p in parts if _norm_entry(p) != target]
            if len(kept) == len(parts):
                return None
            return ";".join(kept)

        return self._write_machine_path(transform)

    @staticmethod
    def _broadcast_change() -> None:
        """Tell running programs (Explorer, new shells) the environment changed."""
        import ctypes
        from ctypes import wintypes

        HWND_BROADCAST = 0xFFFF
        WM_SETTINGCHANGE = 0x001A
        SMTO_ABORTIFHUNG = 0x0002
        result = wintypes.DWORD()
        ctypes.windll.user32.SendMessageTimeoutW(
            HWND_BROADCAST, WM_SETTINGCHANGE, 0, "Environment",
            SMTO_ABORTIFHUNG, 5000, ctypes.byref(result),
        )


class EtcEnvironmentStore(EnvironmentStore):
    """``/etc/environment`` as the machine scope on POSIX hosts.

    There is no persistent user scope; ``read("user")`` is empty.
    """

    def __init__(self, path: Path = Path("/etc/environment")) -> None:
        self.path = path

    def _lines(self) -> list[str]:
        try:
            return self.path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []

    def read(self, scope: Scope) -> dict[str, str]:
        if scope == "user":
            return {}
        values: dict[str, str] = {}
        for line in self._lines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            name, value = line.split("=", 1)
            values[name.strip()] = value.strip().strip('"')
        return values

    def _write_path(self, new_path: str) -> None:
        lines = self._lines()
        out: list[str] = []
        replaced = False
        for line in lines:
            if line.strip().startswith("PATH="):
                out.append(f'PATH="{new_path}"')
                replaced = True
            else:
                out.append(line)
        if not replaced:
            out.append(f'PATH="{new_path}"')
        self.path.write_text("\n".join(out) + "\n", encoding="utf-8")

    def append_machine_path(self, entry: str) -> bool:
        current = self.read("machine").get("PATH", "")
        if path_contains(current, entry, ":"):
            return False
        self._write_path(f"{current}:{entry}" if current else entry)
        return True

    def remove_machine_path(self, entry: str) -> bool:
        current = self.read("machine").get("PATH", "")
        target = _norm_entry(entry)
        parts = [p for p in current.split(":") if p.strip()]
        kept = [p for p in parts if _norm_entry(p) != target]
        if len(kept) == len(parts):
            return False
        self._write_path(":".join(kept))
        return True


class MemoryEnvironmentStore(EnvironmentStore):
    """In-memory store — for dry runs and tests."""

    def __init__(
        self,
        machine: dict[str, str] | None = None,
        user: dict[str, str] | None = None,
        sep: str = os.pathsep,
    ) -> None:
        self.scopes: dict[str, dict[str, str]] = {
            "machine": dict(machine or {}),
            "user": dict(user or {}),
        }
        self.sep = sep

    def read(self, scope: Scope) -> dict[str, str]:
        return dict(self.scopes[scope])

    def append_machine_path(self, entry: str) -> bool:
        machine = self.scopes["machine"]
        current = machine.get("PATH", "")
        if path_contains(current, entry, self.sep):
            return False
        machine["PATH"] = f"{current}{self.sep}{entry}" if current else entry
        return True

    def remove_machine_path(self, entry: str) -> bool:
        machine = self.scopes["machine"]
        target = _norm_entry(entry)
        parts = [p for p in machine.get("PATH", "").split(self.sep) if p.strip()]
        kept = [p for p in parts if _norm_entry(p) != target]
        if len(kept) == len(parts):
            return False
        machine["PATH"] = self.sep.join(kept)
        return True


def default_store() -> EnvironmentStore:
    """The persistent store for the host platform."""
    if sys.platform == "win32":
        return WindowsRegistryStore()
    return EtcEnvironmentStore()


# ── Process snapshot ───────────────────────────────────────────


class ProcessEnvironmentSnapshot:
    """The process's view of environment and search path.

    Mutation entry points:
        ``refresh()``       re-merge persistent stores (after an install)
        ``export()``        set one process variable
        ``prepend_path()``  put a directory at the front of PATH

    ``generation`` increments on every mutation so callers can tell a
    stale read from a fresh one.
    """

    def __init__(
        self,
        store: EnvironmentStore,
        environ: MutableMapping[str, str] | None = None,
        sep: str = os.pathsep,
    ) -> None:
        self.store = store
        self.environ: MutableMapping[str, str] = os.environ if environ is None else environ
        self.sep = sep
        self.generation = 0

    # ── Reads ──────────────────────────────────────────────────

    def get(self, name: str, default: str | None = None) -> str | None:
        value = _lookup(self.environ, name)
        return default if value is None else value

    @property
    def path(self) -> str:
        return self.get("PATH", "") or ""

    def path_entries(self) -> list[str]:
        return [p for p in self.path.split(self.sep) if p.strip()]

    def which(self, name: str) -> str | None:
        """Resolve an executable on the snapshot's PATH."""
        return shutil.which(name, path=self.path)

    def as_dict(self) -> dict[str, str]:
        """Copy suitable for ``subprocess`` ``env=``."""
        return dict(self.environ)

    # ── Mutations ──────────────────────────────────────────────

    def refresh(self) -> None:
        """Reload machine and user variables from the persistent stores.

        User values win over machine values; PATH is the machine PATH
        followed by the user PATH.  Process-only variables are kept.
        When neither store defines PATH the current PATH is left alone.
        """
        machine = self.store.read("machine")
        user = self.store.read("user")

        merged: dict[str, str] = {}
        for scope in (machine, user):
            for name, value in scope.items():
                if name.upper() == "PATH":
                    continue
                merged[name] = value

        context = dict(self.environ)
        context.update(merged)
        for name, value in merged.items():
            self._set(name, _expand(value, context))

        machine_path = _lookup(machine, "PATH") or ""
        user_path = _lookup(user, "PATH") or ""
        parts = [p for p in (machine_path, user_path) if p]
        if parts:
            self._set("PATH", _expand(self.sep.join(parts), context))

        self.generation += 1
        logger.debug(
            "Environment refreshed (generation %d, %d PATH entries)",
            self.generation, len(self.path_entries()),
        )

    def export(self, name: str, value: str) -> None:
        """Set a process environment variable."""
        self._set(name, value)
        self.generation += 1
        logger.debug("export %s=%s", name, value)

    def prepend_path(self, entry: str) -> bool:
        """Put ``entry`` at the front of PATH unless it is already present.

        Returns:
            True if PATH changed.
        """
        if path_contains(self.path, entry, self.sep):
            return False
        current = self.path
        self._set("PATH", f"{entry}{self.sep}{current}" if current else entry)
        self.generation += 1
        logger.debug("PATH += %s (front)", entry)
        return True

    def _set(self, name: str, value: str) -> None:
        # Windows names are case-insensitive: never leave Path next to PATH
        if self.sep == ";":
            for key in list(self.environ.keys()):
                if key.lower() == name.lower() and key != name:
                    del self.environ[key]
        self.environ[name] = value
