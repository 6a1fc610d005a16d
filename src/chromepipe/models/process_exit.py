"""Exit notification model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProcessExit:
    """Terminal event delivered once when the browser process ends."""

    returncode: int | None
    signal: int | None = None

    @classmethod
    def from_returncode(cls, returncode: int | None) -> "ProcessExit":
        # Popen reports death by signal N as returncode -N on POSIX.
        if returncode is not None and returncode < 0:
            return cls(returncode=returncode, signal=-returncode)
        return cls(returncode=returncode)
