"""Free classroom finder: today's free lecture slots per room."""

__version__ = "0.1.0"
