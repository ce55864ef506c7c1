"""Django applications of the shortlet engine."""
