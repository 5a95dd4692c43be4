"""Command-line entrypoints. Not imported by the crypto_ticker package itself."""
