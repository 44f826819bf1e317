"""View definitions — declarative specs for how domain objects become REST bodies.

A ViewDefinition declares: this path shape -> these keys -> these computed
keys, minus the secret ones. The builders in `builder.py` interpret the
definition per request and produce element or collection bodies.
"""
