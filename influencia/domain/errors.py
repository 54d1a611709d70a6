from __future__ import annotations


class SessionAcquisitionError(RuntimeError):
    """The browser could not be created or connected within the timeout."""


class ProfileTornDownError(SessionAcquisitionError):
    """The shared browser profile has been shut down for this process."""


class NavigationTimeout(RuntimeError):
    """The chat page did not finish loading within the navigation timeout."""
