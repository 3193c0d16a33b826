"""Field-level error collection."""

from collections.abc import Iterator


class Errors:
    """Mapping of field name to error messages.

    Nested form errors are merged in under dotted keys, e.g.
    ``artist.name`` or ``songs.title``. Messages are kept unique per key.
    """

    def __init__(self, messages: dict[str, list[str]] | None = None) -> None:
        self._messages: dict[str, list[str]] = {}
        for field, field_messages in (messages or {}).items():
            for message in field_messages:
                self.add(field, message)

    def add(self, field: str, message: str) -> None:
        """Add a message for a field."""
        bucket = self._messages.setdefault(field, [])
        if message not in bucket:
            bucket.append(message)

    def merge(self, other: "Errors | dict[str, list[str]]", prefix: str | None = None) -> None:
        """Merge another error set, optionally under a dotted prefix."""
        messages = other.messages if isinstance(other, Errors) else other
        for field, field_messages in messages.items():
            key = f"{prefix}.{field}" if prefix else field
            for message in field_messages:
                self.add(key, message)

    @property
    def messages(self) -> dict[str, list[str]]:
        """Plain dict copy of all messages."""
        return {field: list(msgs) for field, msgs in self._messages.items()}

    def full_messages(self) -> list[str]:
        """Messages prefixed with a humanized field name."""
        result = []
        for field, field_messages in self._messages.items():
            label = field.replace(".", " ").replace("_", " ").capitalize()
            result.extend(f"{label} {message}" for message in field_messages)
        return result

    def clear(self) -> None:
        self._messages.clear()

    def __getitem__(self, field: str) -> list[str]:
        return list(self._messages.get(field, []))

    def __contains__(self, field: object) -> bool:
        return field in self._messages

    def __iter__(self) -> Iterator[str]:
        return iter(self._messages)

    def __len__(self) -> int:
        return sum(len(msgs) for msgs in self._messages.values())

    def __bool__(self) -> bool:
        return bool(self._messages)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Errors):
            return self._messages == other._messages
        if isinstance(other, dict):
            return self._messages == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"Errors({self._messages!r})"
