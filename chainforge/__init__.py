"""chainforge - AI-assisted Web3 project generator."""

__version__ = "0.1.0"
