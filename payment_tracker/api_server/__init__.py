"""
API server package — admin HTTP interface.

Manual re-scan of blocks and ranges, checkpoint read-out, and liveness.
"""
