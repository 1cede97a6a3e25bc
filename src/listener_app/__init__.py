"""Command-line front end for the OAuth loopback listener."""
