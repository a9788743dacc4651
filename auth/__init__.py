"""auth/ -- The Session Store: accounts, sessions, tokens, lifecycle hooks.

Layer rule: auth/ imports only stdlib + third-party libraries + core/.
It does NOT import from api/, web/, records/, or client/.
api/ and web/ import from auth/, not the other way around.
"""
