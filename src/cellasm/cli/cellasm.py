"""
cellasm - Memory Layout Command-Line Interface
==============================================

Lays out an assembly program and reports where everything lands.

Usage Examples
--------------
Print the symbol table:
    $ cellasm prog.s

Write symbol table and memory map:
    $ cellasm prog.s -s prog.sym -m prog.map

Start the layout somewhere else:
    $ cellasm prog.s --origin 0x200

Verbose mode:
    $ cellasm -v prog.s
"""

import logging
from pathlib import Path
from typing import Optional

import click

from cellasm import __version__
from cellasm.assembler import Assembler
from cellasm.cli.errors import handle_cli_exception
from cellasm.constants import MEMORY_SIZE, PROGRAM_START


def parse_origin(text: str) -> int:
    """
    Parse an --origin value: decimal, 0x/$ hex.

    Raises:
        click.BadParameter: If the value is malformed or outside memory
    """
    text = text.strip()
    try:
        if text.lower().startswith("0x"):
            value = int(text, 16)
        elif text.startswith("$"):
            value = int(text[1:], 16)
        else:
            value = int(text)
    except ValueError:
        raise click.BadParameter(f"invalid address '{text}'", param_hint="--origin")

    if not 0 <= value < MEMORY_SIZE:
        raise click.BadParameter(
            f"address {value} is outside memory (0..{MEMORY_SIZE - 1})",
            param_hint="--origin",
        )
    return value


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the symbol table to FILE",
)
@click.option(
    "-m", "--map", "map_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the memory map to FILE",
)
@click.option(
    "--origin",
    default=str(PROGRAM_START),
    show_default=True,
    help="Start address of the layout (decimal, 0x or $ hex)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="cellasm")
def main(
    input_file: Path,
    symbols: Optional[Path],
    map_file: Optional[Path],
    origin: str,
    verbose: bool,
) -> None:
    """
    Lay out an assembly program in memory.

    INPUT_FILE is the assembly source file to process.

    Every label is bound to an address and every occupied cell is
    classified. Without -s or -m, the symbol table is printed.

    \b
    Examples:
        cellasm prog.s                      # Print symbol table
        cellasm prog.s -s prog.sym          # Write symbol table
        cellasm prog.s -m prog.map          # Write memory map
        cellasm prog.s --origin 0x200       # Start at address 512
    """
    setup_logging(verbose)

    try:
        start = parse_origin(origin)
        asm = Assembler(origin=start, verbose=verbose)

        layout = asm.assemble_file(input_file)

        if symbols is None and map_file is None:
            click.echo(asm.get_symbol_table())

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote {len(layout.labels)} symbols to {symbols}")

        if map_file:
            asm.write_map(map_file)
            if verbose:
                click.echo(f"Wrote memory map to {map_file}")

        if verbose:
            click.echo(
                f"Layout complete: {len(layout.memory)} cells, "
                f"addresses {layout.start}..{layout.end}"
            )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Layout")


if __name__ == "__main__":
    main()
