"""
Generate UFW application profiles and register them with ufw.
"""
from ufwprofile.core.exceptions import (
    ApplyError,
    BadPortTokenError,
    BadProtocolError,
    EscalationError,
    InvalidProfileNameError,
    ProfileValidationError,
    ProfileWriteError,
    UfwProfileError,
)
from ufwprofile.utils.profile_builder import PortEntry, Profile
from ufwprofile.utils.rootcheck import PrivilegeContext, RunningAs, classify

__version__ = "1.0.0"

__all__ = [
    "ApplyError",
    "BadPortTokenError",
    "BadProtocolError",
    "EscalationError",
    "InvalidProfileNameError",
    "PortEntry",
    "PrivilegeContext",
    "Profile",
    "ProfileValidationError",
    "ProfileWriteError",
    "RunningAs",
    "UfwProfileError",
    "classify",
]
