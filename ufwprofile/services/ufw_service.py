"""
Service for writing UFW application profiles and applying them with the ufw tool.
"""
import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, Iterable, Optional, Tuple

from ufwprofile.core.config import Settings, settings as default_settings
from ufwprofile.core.exceptions import ApplyError, ProfileWriteError
from ufwprofile.utils.profile_builder import Profile
from ufwprofile.utils.rootcheck import PrivilegeContext

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]

# Fragments of ufw output that mean the command needs root
_PERMISSION_MARKERS = ("need to be root", "permission denied", "operation not permitted")


def create_profile(
    name: str,
    title: str,
    description: str,
    ports: Iterable[Tuple[str, str]] = (),
    settings: Optional[Settings] = None,
) -> Profile:
    """
    Build a profile using the configured port grammar and file prefix.

    Args:
        name: Application name (whitespace is removed)
        title: Profile title
        description: Profile description
        ports: (port, protocol) pairs appended in order

    Returns:
        Profile instance

    Raises:
        ProfileValidationError: name, title, description, port or protocol rejected
    """
    settings = settings or default_settings
    profile = Profile(
        name,
        title,
        description,
        strict_ranges=settings.STRICT_PORT_RANGES,
        file_prefix=settings.PROFILE_FILE_PREFIX,
    )
    return profile.extend(ports)


def _needs_root(result: subprocess.CompletedProcess) -> bool:
    combined = b" ".join(part for part in (result.stderr, result.stdout) if part)
    text = combined.decode("utf-8", errors="replace").lower()
    return any(marker in text for marker in _PERMISSION_MARKERS)


class UfwService:
    """Writes profile files and registers them with ufw."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        context: Optional[PrivilegeContext] = None,
        runner: Runner = subprocess.run,
    ):
        """
        Initialize ufw service.

        Args:
            settings: Settings to use (defaults to the global settings)
            context: Privilege context used to decide on the sudo fallback
            runner: subprocess.run compatible callable
        """
        self.settings = settings or default_settings
        self.context = context or PrivilegeContext(sudo_binary=self.settings.SUDO_BINARY)
        self.runner = runner

    @property
    def applications_dir(self) -> Path:
        return Path(self.settings.APPLICATIONS_DIR)

    def profile_path(self, profile: Profile) -> Path:
        return profile.path_in(self.applications_dir)

    def is_root(self) -> bool:
        """Escalate if needed and report whether root rights are available."""
        return self.context.escalate_if_needed()

    def check_write_permission(self) -> bool:
        """
        Check that ufw is installed and the applications directory is writable.

        Returns:
            False if `ufw version` cannot be started or the directory is
            missing or read-only
        """
        try:
            self.runner([self.settings.UFW_BINARY, "version"], capture_output=True)
        except OSError as e:
            logger.warning(f"{self.settings.UFW_BINARY} could not be started: {e}")
            return False

        directory = self.applications_dir
        if not directory.is_dir():
            logger.warning(f"Applications directory {directory} does not exist")
            return False
        writable = os.access(directory, os.W_OK)
        if not writable:
            logger.info(f"Applications directory {directory} is not writable")
        return writable

    def write(self, profile: Profile) -> Path:
        """
        Write the profile file, replacing any existing one.

        Returns:
            Path of the written file

        Raises:
            ProfileWriteError: removing the old file or writing the new one failed
        """
        path = self.profile_path(profile)
        if path.exists() or path.is_symlink():
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"Failed to remove existing profile {path}: {e}")
                raise ProfileWriteError(path, "delete", e) from e

        try:
            path.write_text(profile.serialize(), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write profile {path}: {e}")
            raise ProfileWriteError(path, "write", e) from e

        logger.info(f"Wrote profile {profile.name} to {path}")
        return path

    def apply(self, profile: Profile, allow: bool = True) -> str:
        """
        Write the profile and allow or deny it with ufw.

        ufw is invoked directly first. If that fails for lack of rights, the
        same command is run once more through sudo.

        Args:
            profile: Profile to register
            allow: True for `ufw allow`, False for `ufw deny`

        Returns:
            Standard output of the successful ufw invocation

        Raises:
            ApplyError: writing the file, starting ufw or ufw itself failed
        """
        self._write_for_apply(profile)
        command = self._rule_command(profile, allow)

        try:
            result = self.runner(command, capture_output=True)
        except PermissionError as e:
            if self.context.is_root():
                raise ApplyError("invoke", f"Failed to execute {command[0]}: {e}") from e
            logger.info(f"Permission denied running {command[0]}, retrying with {self.settings.SUDO_BINARY}")
            result = self._run_elevated(command)
        except OSError as e:
            logger.error(f"Failed to execute {command[0]}: {e}")
            raise ApplyError("invoke", f"Failed to execute {command[0]}: {e}") from e
        else:
            if result.returncode != 0 and _needs_root(result) and not self.context.is_root():
                logger.info(f"{command[0]} requires root, retrying with {self.settings.SUDO_BINARY}")
                result = self._run_elevated(command)

        return self._output(command, result)

    def apply_direct(self, profile: Profile, allow: bool = True) -> str:
        """Write the profile and invoke ufw without the sudo fallback."""
        self._write_for_apply(profile)
        command = self._rule_command(profile, allow)
        try:
            result = self.runner(command, capture_output=True)
        except OSError as e:
            logger.error(f"Failed to execute {command[0]}: {e}")
            raise ApplyError("invoke", f"Failed to execute {command[0]}: {e}") from e
        return self._output(command, result)

    def apply_with_sudo(self, profile: Profile, allow: bool = True) -> str:
        """Write the profile and invoke ufw through sudo."""
        self._write_for_apply(profile)
        command = self._rule_command(profile, allow)
        return self._output(command, self._run_elevated(command))

    def _rule_command(self, profile: Profile, allow: bool) -> list:
        action = "allow" if allow else "deny"
        return [self.settings.UFW_BINARY, action, profile.name]

    def _write_for_apply(self, profile: Profile) -> Path:
        try:
            return self.write(profile)
        except ProfileWriteError as e:
            raise ApplyError("write", str(e)) from e

    def _run_elevated(self, command: list) -> subprocess.CompletedProcess:
        elevated = [self.settings.SUDO_BINARY, *command]
        try:
            return self.runner(elevated, capture_output=True)
        except OSError as e:
            logger.error(f"Failed to execute {elevated[0]}: {e}")
            raise ApplyError("invoke", f"Failed to execute {elevated[0]}: {e}") from e

    def _output(self, command: list, result: subprocess.CompletedProcess) -> str:
        if result.returncode != 0:
            detail = (result.stderr or result.stdout or b"").decode("utf-8", errors="replace").strip()
            logger.error(f"{' '.join(command)} exited with code {result.returncode}: {detail}")
            raise ApplyError(
                "invoke",
                f"{' '.join(command)} exited with code {result.returncode}: {detail}",
                returncode=result.returncode,
            )
        try:
            return (result.stdout or b"").decode("utf-8")
        except UnicodeDecodeError as e:
            raise ApplyError("decode", f"{command[0]} produced non UTF-8 output: {e}") from e
