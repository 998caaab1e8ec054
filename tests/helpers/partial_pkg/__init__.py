"""Package with one submodule that cannot be imported."""
