"""
rpncc Command-Line Interface
============================

- **rpncc**: compile a postfix program to NASM assembly, or run it on the
  built-in emulator

Implemented as a Click-based CLI application.
"""

__all__ = ["rpncc"]
