import logging
import subprocess
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass
class CommandResult:
    output: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


def _decode(raw) -> str:
    if not raw:
        return ""
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")


class CommandRunner:
    """
    Runs the operator-configured command of a named slot and captures
    stdout and stderr as one combined stream.
    """

    def __init__(self, commands: dict, timeout=None):
        self.commands = dict(commands)
        self.timeout = timeout

    def run(self, slot: str) -> CommandResult:
        argv = list(self.commands[slot])
        log.info("Running %s command: %s", slot, " ".join(argv))

        try:
            completed = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as error:
            log.error("%s command timed out after %s seconds", slot, self.timeout)
            return CommandResult(
                output=_decode(error.output),
                error=f"Command timed out after {self.timeout:g} seconds",
            )
        except OSError as error:
            log.error("%s command could not be started: %s", slot, error)
            return CommandResult(error=f"Command failed: {error}")

        output = _decode(completed.stdout)
        if completed.returncode != 0:
            log.error("%s command exited with status %d", slot, completed.returncode)
            return CommandResult(output=output, error=f"Command failed: exit status {completed.returncode}")

        log.info("%s command finished", slot)
        return CommandResult(output=output)
