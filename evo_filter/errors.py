# ============================================================
# Error types raised by the library; the CLI turns them into
# exit codes, nothing else catches them.
# ============================================================


class EvoFilterError(Exception):
    pass


class InputError(EvoFilterError):
    """Target image or fragment library could not be used."""


class ConfigError(EvoFilterError):
    """Stopping criteria or run settings are invalid."""


class ExportError(EvoFilterError):
    """A committed placement cannot be written to the vector document."""
