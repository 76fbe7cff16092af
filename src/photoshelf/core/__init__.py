"""Pure logic with no I/O: progress reduction and Live Photo pairing."""
