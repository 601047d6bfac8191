"""Exceptions shared by the detector, classifier and session."""


class InvalidInput(ValueError):
    """A sample passed to the detector is empty or malformed."""


class ModelError(RuntimeError):
    """The classifier could not be loaded or failed on a frame."""


class SettingsError(ValueError):
    """A runtime setting is outside its allowed range."""
