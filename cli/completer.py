"""Custom completer for the spfiles shell with local file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS


class SpFilesCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file name completion for the 'upload' command
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.

        For the first token, completes command names.
        For 'upload' arguments, completes files of the working directory.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command != "upload":
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        already_typed_files = set(tokens[1:])
        if not is_typing_new_token:
            already_typed_files.discard(current_word)

        yield from self._complete_local_files(current_word, already_typed_files)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_local_files(
        self, partial: str, exclude_files: set
    ) -> Iterable[Completion]:
        """
        Complete names of regular files in the working directory.

        Shows a message if there is nothing to upload.
        """
        available_files = sorted(
            item.name
            for item in Path.cwd().iterdir()
            if item.is_file() and item.name not in exclude_files
        )

        if not available_files:
            yield Completion(
                "",
                start_position=0,
                display="(no files found in current directory)",
            )
            return

        partial_lower = partial.lower()
        for name in available_files:
            if name.lower().startswith(partial_lower):
                yield Completion(name, start_position=-len(partial))
