"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers, but the settings file stores them as
strings for JSON compatibility. These wrappers keep both representations in
sync so the store, the flag tracker and the cogs agree on identity no matter
which form an id arrived in.
"""

from __future__ import annotations

from typing import Union

SnowflakeLike = Union[str, int, "DiscordSnowflake"]


class DiscordSnowflake:
    """
    Base wrapper for a Discord snowflake ID.

    Attributes:
        _value (str): The snowflake ID stored as a string for JSON parity.

    Example:
        >>> gid = GuildID.from_int(123456789012345678)
        >>> gid.to_int()
        123456789012345678
        >>> str(gid)
        '123456789012345678'
        >>> GuildID("123456789012345678") == 123456789012345678
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: SnowflakeLike) -> None:
        """
        Initialize from a string, int, or another snowflake wrapper.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, DiscordSnowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            self._value = str(value)
        elif isinstance(value, str):
            # Validate that it's a valid integer string
            self._value = str(int(value.strip()))
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    def to_int(self) -> int:
        """Convert to an integer for Discord API calls."""
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, type(self)):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class GuildID(DiscordSnowflake):
    """Snowflake of a guild (server)."""

    __slots__ = ()


class ChannelID(DiscordSnowflake):
    """Snowflake of a text channel or thread."""

    __slots__ = ()


class RoleID(DiscordSnowflake):
    """Snowflake of a guild role."""

    __slots__ = ()


class MessageID(DiscordSnowflake):
    """Snowflake of a message."""

    __slots__ = ()
