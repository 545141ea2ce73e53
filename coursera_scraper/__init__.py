"""Mirror a Coursera course's lecture videos and assets into a local folder tree."""

__version__ = "1.0.0"
