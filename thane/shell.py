"""
Thane shell: the single output sink of the engine.

Every line the dispatcher or the help generator prints goes through a Shell:
- say(line="", stderr=False, style=Unset): one line (or any rich renderable, such as a fault)
- print_table(rows, indent=0, truncate=False): aligned columns
- print_wrapped(text, indent=0): paragraphs wrapped to the console width

Both streams are rich consoles. Tests and embedding applications pass their
own consoles (for example Console(file=io.StringIO())) to capture output.
"""
from rich.console import Console
from rich.padding import Padding
from rich.table import Table
from rich.text import Text

from . import config
from .utils import Unset, coalesce

_DEFAULT_STYLES = {
    "heading": "bold #E6E6F0",
    "usage": "#00E5FF",
    "comment": "#9CE19C",
    "banner": "italic #C8C8D0",
}


class Shell:
    """
    Rich-backed output sink.

    Parameters
    - stdout / stderr: rich Console instances (defaults: Console() / Console(stderr=True)).
    - colorful: apply palette styles (see thane.config.palette); False keeps output plain.
    """

    def __init__(self, stdout=Unset, stderr=Unset, /, *, colorful=True):
        self.stdout = Console(highlight=False) if stdout is Unset else stdout
        self.stderr = Console(stderr=True, highlight=False) if stderr is Unset else stderr
        self.colorful = bool(colorful)

    def style(self, name, /):
        """resolve a palette key to a rich style ("" when colors are off)."""
        return config.palette(_DEFAULT_STYLES)[name] if self.colorful else ""

    def _text(self, line, style):
        if not isinstance(line, str):
            return line
        return Text(line, self.style(style) if style else "")

    def say(self, line="", /, *, stderr=False, style=Unset):
        console = self.stderr if stderr else self.stdout
        console.print(self._text(line, coalesce(style, "")), soft_wrap=True)

    def print_table(self, rows, /, indent=0, truncate=False):
        rows = [[str(cell) for cell in row] for row in rows]
        if not rows:
            return
        table = Table.grid(padding=(0, 2))
        for _ in range(max(map(len, rows))):
            table.add_column(no_wrap=truncate, overflow="ellipsis" if truncate else "fold")
        for row in rows:
            table.add_row(*(
                Text(cell, self.style("comment") if cell.startswith("#") else "") for cell in row
            ))
        self.stdout.print(Padding(table, (0, 0, 0, indent), expand=False))

    def print_wrapped(self, text, /, indent=0):
        paragraphs = [" ".join(paragraph.split()) for paragraph in str(text).split("\n\n")]
        for index, paragraph in enumerate(filter(None, paragraphs)):
            if index:
                self.stdout.print()
            self.stdout.print(Padding(Text(paragraph), (0, 0, 0, indent), expand=False))


__all__ = (
    "Shell",
)
