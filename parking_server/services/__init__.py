class BatchReadError(RuntimeError):
    """A reconciler could not load its batch; nothing was written"""
