"""Runtime support imported by generated programs (not by the compiler)."""
