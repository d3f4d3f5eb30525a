"""
Shared Kernel

Domain base classes, value objects, the unit of work and the message bus
used by both the availability and booking contexts.
"""
