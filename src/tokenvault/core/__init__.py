"""
TokenVault core: arithmetic kernel, ledger contract, rate limiting,
configuration, logging and metrics.
"""
