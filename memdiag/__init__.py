"""memdiag - Linux memory usage report and OOM-killer log analyzer."""

__version__ = "0.1.0"
