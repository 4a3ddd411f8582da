"""Pure domain utilities: parsed references and the request path grammar.

These modules are free of FastAPI/HTTP and filesystem concerns so they can be
unit-tested on their own and shared by the server and the smoke runner.
"""
__all__ = ["grammar", "refs"]
