class PanicError(RuntimeError):
    """Deliberate unrecoverable fault used to exercise crash reporting."""
