# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import click
from click import HelpFormatter
from click_help_colors import HelpColorsCommand

# color used for positional arguments in help messages
ARGUMENT_COLOR = "green"


def styled_metavar(name: str) -> str:
    """Return the metavar of a positional argument styled for help messages."""
    return click.style(name, fg=ARGUMENT_COLOR)


class GNUHelpFormatter(HelpFormatter):
    """Help formatter printing each option on its own line, GNU-style."""

    def __init__(self, width=None, headers_color=None, options_color=None):
        super().__init__(width=width)
        self.headers_color = headers_color or "white"
        self.options_color = options_color or "white"

    def write_heading(self, heading):
        self.write(f"{click.style(heading, fg=self.headers_color, bold=True)}\n")

    def write_usage(self, prog_name, args="", prefix=None):
        prefix = click.style(prefix or "Usage:", fg=self.headers_color, bold=True)
        self.write(f"{prefix} {prog_name} {args}".rstrip() + "\n")

    def write_dl(self, rows, col_max=30, col_spacing=2):
        for term, definition in rows:
            self.write(f"  {click.style(term, fg=self.options_color, bold=True)}\n")

            for line in (definition or "").splitlines():
                if line.strip():
                    self.write(f"      {line}\n")
            self.write("\n")


class GNUHelpColorsCommand(HelpColorsCommand):
    """Command printing its options in GNU-style."""

    def get_help(self, ctx):
        formatter = GNUHelpFormatter(
            width=ctx.terminal_width,
            headers_color=getattr(self, "help_headers_color", None),
            options_color=getattr(self, "help_options_color", None),
        )

        self.format_help(ctx, formatter)
        return formatter.getvalue()
