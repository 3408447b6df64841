"""Text entry used by the filter and image-pull input modes."""

from dataclasses import dataclass

from .model import Mode

FILTER_LIMIT = 50
PULL_LIMIT = 100

PROMPTS = {
    Mode.FILTER: "Filter: ",
    Mode.PULL_IMAGE: "Pull image: ",
}
LIMITS = {
    Mode.FILTER: FILTER_LIMIT,
    Mode.PULL_IMAGE: PULL_LIMIT,
}


@dataclass
class InputLine:
    """Single-line edit buffer with a character limit."""
    limit: int = FILTER_LIMIT
    value: str = ""

    @classmethod
    def for_mode(cls, mode: Mode, initial: str = "") -> "InputLine":
        line = cls(limit=LIMITS.get(mode, FILTER_LIMIT))
        line.value = initial[:line.limit]
        return line

    def insert(self, char: str) -> bool:
        """Append a printable character. Returns False when it was rejected."""
        if not char or not char.isprintable() or len(self.value) + len(char) > self.limit:
            return False
        self.value += char
        return True

    def backspace(self) -> None:
        self.value = self.value[:-1]

    def render(self, prompt: str) -> str:
        return f"{prompt}{self.value}█"
