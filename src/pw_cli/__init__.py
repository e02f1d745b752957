"""pw - A command line password manager.
Entries are kept in a single file encrypted by scrypt or pynacl.
"""

__version__ = "1.0.0"
