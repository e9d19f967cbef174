"""Command execution data models."""

from dataclasses import dataclass, field


@dataclass
class CommandResult:
    """Result of a remote command execution."""

    output: str
    error: str
    returncode: int


@dataclass(frozen=True)
class PtyOptions:
    """Pseudo-terminal settings for exec and shell channels."""

    term_type: str = "xterm"
    columns: int = 80
    rows: int = 24
    width: int = 0  # pixels
    height: int = 0
    modes: dict[int, int] = field(default_factory=dict)

    @property
    def term_size(self) -> tuple[int, int, int, int]:
        """Terminal size tuple in asyncssh order."""
        return (self.columns, self.rows, self.width, self.height)


@dataclass(frozen=True)
class AuthPrompt:
    """One keyboard-interactive prompt sent by the device."""

    text: str
    is_secret: bool
