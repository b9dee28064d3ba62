"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

OPERATIONS = ["upload", "download", "remove", "list"]

COMMANDS = OPERATIONS + ["clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#0078D4 bold",
        "command": "#0088ff bold",
    }
)

CONFIG_DIR_NAME = ".spfiles"
CONFIG_FILE_NAME = "config.json"

WELCOME_TITLE = "spfiles shell - connected to {root} [{folder}]"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "spfiles> "

USAGE = """use:
\tspfiles -s serverRootUri [-f serverFolderPath] -u userName -p password [-o operation] [--shell] [--debug] -- item...

\toperation: upload (default), download, remove, list
\tupload items are local file masks, download/remove items are remote file masks,
\tlist items are sub-folders of serverFolderPath (none = the folder itself)
\tnote: serverFolderPath is usually prefixed with 'Shared Documents'"""

HELP_TEXT = """Available commands:
  upload <mask>...                    Upload local files matching the masks
  download <mask>...                  Download remote files (one item = remote mask)
  remove <mask>...                    Remove remote files (one item = remote mask)
  list [folder]...                    List a sub-folder (empty = current folder)
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit shell

Masks use '*' for any run of characters and '?' for exactly one.
Examples:
  upload *.csv
  upload report.pdf notes.txt
  list
  list Archive
  download report*.csv
  remove draft_?.docx"""
