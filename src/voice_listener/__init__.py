"""Voice listener: wake phrase detection, utterance segmentation and spoken dialogue."""

__version__ = "0.1.0"
