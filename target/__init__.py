"""Hardware targets the tracker can be driven from."""
