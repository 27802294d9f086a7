"""
UFW application profile builder.

Accumulates validated port/protocol entries for one application and renders
the INI-like profile text UFW reads from its applications directory:

    [<name>]
    title=<title>
    description=<description>
    ports=<token>[|<token>...]
"""
import re
import logging
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from pydantic import BaseModel

from ufwprofile.core.exceptions import (
    BadPortTokenError,
    BadProtocolError,
    InvalidProfileNameError,
    InvalidProfileTextError,
)

logger = logging.getLogger(__name__)

PROTOCOLS = ("tcp", "udp", "")
DEFAULT_FILE_PREFIX = "ufw-"

_PORT_PATTERN = re.compile(r'\d+', re.ASCII)
_RANGE_PATTERN = re.compile(r'\d+:\d+', re.ASCII)
_WHITESPACE = re.compile(r'\s+')
# Would escape the applications directory or break the section header
_FORBIDDEN_NAME_CHARS = re.compile(r'[/\[\]\x00]')
_LINE_BREAK = re.compile(r'[\r\n]')


class PortEntry(BaseModel):
    """A single validated port (or range) and its protocol."""
    port: str
    protocol: str = ""  # "" allows every protocol

    @property
    def token(self) -> str:
        if self.protocol:
            return f"{self.port}/{self.protocol}"
        return self.port


def normalize_name(name: str) -> str:
    """Remove every whitespace character from a profile name."""
    return _WHITESPACE.sub("", name)


def validate_port_entry(port: str, protocol: str = "", strict_ranges: bool = False) -> PortEntry:
    """
    Validate a port/protocol pair.

    Protocol is checked first, then the port token. A bare port number is only
    accepted when strict_ranges is False.

    Args:
        port: Port number ("80") or range ("81:82")
        protocol: "tcp", "udp" or "" for any protocol
        strict_ranges: Accept only <low>:<high> ranges

    Returns:
        PortEntry for the pair

    Raises:
        BadProtocolError: protocol is not tcp, udp or empty
        BadPortTokenError: port does not match the port grammar
    """
    if protocol not in PROTOCOLS:
        raise BadProtocolError(protocol)

    if _RANGE_PATTERN.fullmatch(port):
        return PortEntry(port=port, protocol=protocol)
    if not strict_ranges and _PORT_PATTERN.fullmatch(port):
        return PortEntry(port=port, protocol=protocol)
    raise BadPortTokenError(port, strict_ranges=strict_ranges)


def parse_port_spec(spec: str) -> Tuple[str, str]:
    """
    Split a "<port>[/<protocol>]" spec into its parts.

    Only splits; validation happens when the pair is appended to a Profile.
    """
    port, _, protocol = spec.strip().partition("/")
    return port, protocol


class Profile:
    """
    Builder for a single UFW application profile.

    Appends are validated before they are applied, so a rejected entry never
    changes previously accumulated state. Methods return the profile itself
    so calls can be chained:

        Profile("AppName", "Title", "Description") \\
            .append_port("80") \\
            .append_port("81:82", "tcp")
    """

    def __init__(
        self,
        name: str,
        title: str,
        description: str,
        strict_ranges: bool = False,
        file_prefix: str = DEFAULT_FILE_PREFIX,
    ):
        normalized = normalize_name(name)
        if not normalized:
            raise InvalidProfileNameError(name)
        if _FORBIDDEN_NAME_CHARS.search(normalized):
            raise InvalidProfileNameError(name, "'/', '[', ']' and NUL are not allowed")
        for field, text in (("title", title), ("description", description)):
            if _LINE_BREAK.search(text):
                raise InvalidProfileTextError(field, text)
        self.name = normalized
        self.title = title
        self.description = description
        self.strict_ranges = strict_ranges
        self.file_prefix = file_prefix
        self._entries: List[PortEntry] = []

    @property
    def entries(self) -> List[PortEntry]:
        return list(self._entries)

    @property
    def ports_value(self) -> str:
        return "|".join(entry.token for entry in self._entries)

    @property
    def filename(self) -> str:
        return f"{self.file_prefix}{self.name}"

    def path_in(self, directory: Union[str, Path]) -> Path:
        """Path of this profile's file inside the given applications directory."""
        return Path(directory) / self.filename

    def append_port(self, port: str, protocol: str = "") -> "Profile":
        entry = validate_port_entry(port, protocol, strict_ranges=self.strict_ranges)
        self._entries.append(entry)
        logger.debug(f"Profile {self.name}: added port token {entry.token}")
        return self

    def extend(self, pairs: Iterable[Tuple[str, str]]) -> "Profile":
        """
        Append several (port, protocol) pairs at once.

        Every pair is validated before any is added; one bad pair rejects the
        whole batch.
        """
        validated = [
            validate_port_entry(port, protocol, strict_ranges=self.strict_ranges)
            for port, protocol in pairs
        ]
        self._entries.extend(validated)
        return self

    def serialize(self) -> str:
        return (
            f"[{self.name}]\n"
            f"title={self.title}\n"
            f"description={self.description}\n"
            f"ports={self.ports_value}\n"
        )

    # Older name for serialize()
    get_config_string = serialize

    def __str__(self) -> str:
        return self.serialize()

    def __repr__(self) -> str:
        return f"Profile(name={self.name!r}, ports={self.ports_value!r})"
