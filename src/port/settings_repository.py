from typing import Protocol


class SettingsRepository(Protocol):
    """Protocol for the key/value settings store."""
    def get_all(self) -> dict[str, str] | None:
        """Return every setting as a dict. Return None if the store could not be read."""
        ...

    def upsert(self, values: dict[str, str]) -> dict[str, str] | None:
        """Insert or overwrite the given keys. Return the full settings dict, or None on failure."""
        ...
