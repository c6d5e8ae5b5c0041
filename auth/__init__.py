"""auth/ -- Authentication package for DevConnect.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/ or social/.
api/ imports from auth/, not the other way around.
"""
