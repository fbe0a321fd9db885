"""QueueJuice — simulated upload-queue engine for file-upload interfaces."""

__version__ = "0.1.0"
