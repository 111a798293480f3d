"""Document decoding errors."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParseError:
    """The payload is not a readable document of any known version."""

    reason: str

    def __str__(self) -> str:
        return f"Parse error: {self.reason}"
