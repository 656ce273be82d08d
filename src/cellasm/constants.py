"""
Machine Constants
=================

Address-space constants for the cell-addressed teaching machine.

Every memory cell holds one machine word, so addresses count cells rather
than bytes: an instruction, a `.word`, a reserved `.space` slot and one
character of a `.string` each occupy exactly one address.
"""

# Total number of memory cells
MEMORY_SIZE = 10_000

# Where the program is placed unless `.addr` moves the cursor
PROGRAM_START = 1000
