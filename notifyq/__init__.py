"""notifyq - transactional notification delivery queue."""
__version__ = "0.1.0"
