class ChatlogTranslatorError(Exception):
    """Base class for failures the polling loop recovers from."""


class ConfigError(ChatlogTranslatorError):
    """Translation options are missing or invalid for the selected mode."""


class ProviderError(ChatlogTranslatorError):
    """A translation backend failed or returned an unusable response."""


class UnsafeNameError(ChatlogTranslatorError):
    """A file name failed the deletion safety policy."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"{reason} Cannot delete. {name}")
        self.name = name
        self.reason = reason
