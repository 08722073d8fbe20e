"""In-memory implementation of SettingsRepository for testing."""


class FakeSettingsRepository:
    def __init__(self, values: dict[str, str] | None = None, fail: bool = False):
        self.values: dict[str, str] = dict(values or {})
        self.fail = fail
        self.read_count = 0

    def get_all(self) -> dict[str, str] | None:
        self.read_count += 1
        if self.fail:
            return None
        return dict(self.values)

    def upsert(self, values: dict[str, str]) -> dict[str, str] | None:
        if self.fail:
            return None
        self.values.update({k: str(v) for k, v in values.items()})
        return dict(self.values)
