"""blockevo – genetic evolution of procedurally generated jointed creatures."""
