"""
Detect whether the process runs as root and escalate through sudo if needed.

Three states are recognised:

- ROOT: real and effective uid are both 0.
- SUID: effective uid is 0 but the real uid is not (set-uid executable).
  Calling :meth:`PrivilegeContext.escalate_if_needed` claims uid 0 for the
  rest of the process without restarting it.
- USER: anything else. Escalation re-runs the current program through the
  elevation helper and waits for it to exit.

The state is recomputed on every call and never cached.
"""
import enum
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

from ufwprofile.core.config import BACKTRACE_ENV_VAR, settings
from ufwprofile.core.exceptions import EscalationError

logger = logging.getLogger(__name__)


class RunningAs(str, enum.Enum):
    """Privilege state of the current process."""
    ROOT = "root"
    SUID = "suid"
    USER = "user"


def classify(uid: int, euid: int) -> RunningAs:
    """Classify a (real uid, effective uid) pair."""
    if euid == 0:
        return RunningAs.ROOT if uid == 0 else RunningAs.SUID
    return RunningAs.USER


def backtrace_value(raw: Optional[str]) -> Optional[str]:
    """
    Map the backtrace toggle to the value relayed to the escalated process.

    Returns None when the toggle should not be relayed.
    """
    if raw is None:
        return None
    value = raw.lower()
    if value == "":
        return None
    if value in ("1", "true"):
        return "1"
    if value == "full":
        return "full"
    logger.warning(f'{BACKTRACE_ENV_VAR} has invalid value {raw!r} -> defaulting to "full"')
    return "full"


def _getuid() -> int:
    return os.getuid()


def _geteuid() -> int:
    return os.geteuid()


def _setuid(uid: int) -> None:
    os.setuid(uid)


def _spawn_and_wait(command: List[str]) -> int:
    return subprocess.run(command).returncode


class PrivilegeContext:
    """
    Identity primitives and escalation behaviour for one process.

    Every collaborator can be replaced, so callers and tests can substitute
    fake identities or a fake elevation helper instead of touching the real
    process state.
    """

    def __init__(
        self,
        sudo_binary: Optional[str] = None,
        getuid: Callable[[], int] = _getuid,
        geteuid: Callable[[], int] = _geteuid,
        setuid: Callable[[int], None] = _setuid,
        spawn: Callable[[List[str]], int] = _spawn_and_wait,
        argv: Optional[Sequence[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        executable: Optional[str] = None,
    ):
        self.sudo_binary = sudo_binary or settings.SUDO_BINARY
        self._getuid = getuid
        self._geteuid = geteuid
        self._setuid = setuid
        self._spawn = spawn
        self._argv = argv
        self._environ = environ
        self._executable = executable

    @property
    def argv(self) -> List[str]:
        return list(sys.argv if self._argv is None else self._argv)

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    @property
    def executable(self) -> str:
        return self._executable or sys.executable

    def check(self) -> RunningAs:
        """Read the real and effective uid and classify them."""
        return classify(self._getuid(), self._geteuid())

    def is_root(self) -> bool:
        return self.check() is RunningAs.ROOT

    def relayed_environment(self, prefixes: Sequence[str] = ()) -> List[str]:
        """NAME=VALUE arguments passed through sudo to the re-executed process."""
        assignments = []
        env = self.environ

        trace = backtrace_value(env.get(BACKTRACE_ENV_VAR))
        if trace is not None:
            logger.debug(f"relaying {BACKTRACE_ENV_VAR}={trace}")
            assignments.append(f"{BACKTRACE_ENV_VAR}={trace}")

        if prefixes:
            for name, value in env.items():
                if name == BACKTRACE_ENV_VAR:
                    continue
                if any(name.startswith(prefix) for prefix in prefixes):
                    logger.debug(f"propagating {name}={value}")
                    assignments.append(f"{name}={value}")
        return assignments

    def reexec_arguments(self) -> List[str]:
        """
        Command line that restarts the current program.

        argv[0] is replaced by its absolute path when it names an existing
        file, so the restarted process does not depend on the caller's cwd.
        A package's ``__main__.py`` (the program was started with ``-m``) is
        run again as ``-m <package>``.
        """
        args = self.argv
        if not args:
            raise EscalationError("Cannot re-execute: argv is empty")
        script = Path(args[0])
        if script.is_file() and script.name == "__main__.py":
            return [self.executable, "-m", script.resolve().parent.name, *args[1:]]
        if script.exists():
            args[0] = str(script.resolve())
        return [self.executable, *args]

    def build_escalation_command(self, prefixes: Sequence[str] = ()) -> List[str]:
        return [self.sudo_binary, *self.relayed_environment(prefixes), *self.reexec_arguments()]

    def with_env(self, prefixes: Sequence[str] = ()) -> bool:
        """
        Make sure the program runs with root rights.

        Args:
            prefixes: Environment variable name prefixes relayed to the
                re-executed process

        Returns:
            True when this process is (now) root. In the USER state, whether
            the re-executed child exited successfully; this process itself
            stays unprivileged.

        Raises:
            EscalationError: setuid(0) failed or the elevation helper could
                not be started
        """
        current = self.check()
        logger.debug(f"Running as {current.value}")

        if current is RunningAs.ROOT:
            logger.debug("already running as root")
            return True

        if current is RunningAs.SUID:
            logger.debug("setuid(0)")
            try:
                self._setuid(0)
            except OSError as e:
                raise EscalationError(f"Failed to claim root from set-uid executable: {e}") from e
            return True

        logger.debug("Escalating privileges")
        command = self.build_escalation_command(prefixes)
        try:
            returncode = self._spawn(command)
        except OSError as e:
            logger.error(f"Failed to execute {self.sudo_binary}: {e}")
            raise EscalationError(f"Failed to execute {self.sudo_binary}: {e}") from e

        logger.debug(f"Escalated process exited with code {returncode}")
        return returncode == 0

    def escalate_if_needed(self) -> bool:
        return self.with_env(())


def check() -> RunningAs:
    """Classify the current process."""
    return PrivilegeContext().check()


def with_env(prefixes: Sequence[str] = ()) -> bool:
    return PrivilegeContext().with_env(prefixes)


def escalate_if_needed() -> bool:
    return PrivilegeContext().escalate_if_needed()
