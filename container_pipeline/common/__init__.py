from .command_runner import CommandResult, CommandRunner

__all__ = ["CommandResult", "CommandRunner"]
