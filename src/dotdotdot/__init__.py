"""dotdotdot: turn free-form text into bullet points behind request defences."""

__version__ = "0.1.0"
