"""Core of a trojan-protocol proxy: config parsing, option handling, relaying, redirection, recording, geodata and logging."""

__version__ = "0.1.0"