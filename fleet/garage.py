"""Garage class for maintenance locations."""


class Garage:
    """A garage where buses are based and repaired."""

    def __init__(self, id: str, name: str, code: str):
        self.id = id
        self.name = name
        self.code = code

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.code})"
