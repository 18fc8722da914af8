"""
Services package.

Subpackages:
- scheduling: active events and their wait tasks
- status: snapshot writer and status sinks
- control: control file input
"""
